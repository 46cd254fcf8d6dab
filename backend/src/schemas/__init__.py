from schemas.schemas import Score, ScoreData
