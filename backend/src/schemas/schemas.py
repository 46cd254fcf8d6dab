from pydantic import BaseModel, ConfigDict, Field


class Score(BaseModel):
    model_config = ConfigDict(frozen=True)

    team1: int = Field(default=0, ge=0)
    team2: int = Field(default=0, ge=0)


class ScoreData(BaseModel):
    ''' One published snapshot of the game state. Immutable once built.'''

    model_config = ConfigDict(frozen=True)

    score: Score = Field(default_factory=Score)

    @classmethod
    def of(cls, team1: int, team2: int) -> "ScoreData":
        return cls(score=Score(team1=team1, team2=team2))
