from models.models import BroadcastHub, Subscription
from models.producer import Producer, StateStore, Transition, random_score_step
