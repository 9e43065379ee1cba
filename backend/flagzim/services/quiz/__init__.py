"""Quiz rules: flag ordering, the per-game state machine and its countdown."""

from .countdown import Countdown
from .ordering import build_classic_order, build_daily_order, seeded_shuffle
from .session import QuizSession, QuizResult, Question, AnswerResult

__all__ = [
    'Countdown',
    'build_classic_order',
    'build_daily_order',
    'seeded_shuffle',
    'QuizSession',
    'QuizResult',
    'Question',
    'AnswerResult',
]
