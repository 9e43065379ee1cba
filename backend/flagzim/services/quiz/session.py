import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from flagzim.errors import QuizStateError
from flagzim.models import MODE_CLASSIC, MODE_DAILY, MODES
from .ordering import DAILY_FLAG_COUNT, build_classic_order, build_daily_order, shuffle

QUESTION_DURATION_SEC = 10
OPTION_COUNT = 4

READY = 'ready'
ACTIVE = 'active'
COMPLETED = 'completed'
FAILED = 'failed'

FLAG_URL = 'https://flagcdn.com/w640/{code}.png'


@dataclass
class Question:
    index: int
    total: int
    code: str
    answer: str
    options: List[str]

    def to_dict(self):
        # the answer stays on the server
        return {
            'index': self.index,
            'total': self.total,
            'code': self.code,
            'flag_url': FLAG_URL.format(code=self.code),
            'options': list(self.options),
        }


@dataclass
class AnswerResult:
    choice: str
    correct: bool
    answer: str
    state: str
    options: List[dict] = field(default_factory=list)  # [{'name', 'correct'}] for feedback


@dataclass
class QuizResult:
    completed: bool
    score: int
    time: float

    @property
    def avg(self) -> float:
        return self.time / self.score if self.score else 0.0


def mode_label(mode: str, day: Optional[str]) -> str:
    return f"Daily ({day})" if mode == MODE_DAILY else 'Classic'


class QuizSession:
    """One game: a fixed flag order played question by question.

    ready -> active(i) -> active(i+1) | completed | failed. A wrong answer or
    an expired 10-second window fails the run; answering the last flag
    completes it.
    """

    def __init__(self, mode: str, order: Sequence[Tuple[str, str]], day: Optional[str] = None,
                 rng: Optional[random.Random] = None, clock: Callable[[], float] = time.monotonic,
                 question_duration: float = QUESTION_DURATION_SEC):
        if mode not in MODES:
            raise QuizStateError(f'unknown mode {mode!r}')
        self.mode = mode
        self.day = day
        self.order = list(order)
        self.index = 0
        self.score = 0
        self.state = READY
        self.question_duration = question_duration
        self.run_start: Optional[float] = None
        self.question_start: Optional[float] = None
        self.finished_at: Optional[float] = None
        self.current: Optional[Question] = None
        self._rng = rng or random.Random()
        self._clock = clock

    @classmethod
    def start(cls, mode: str, countries: Sequence[Tuple[str, str]], daily_seed: Optional[str] = None,
              rng: Optional[random.Random] = None, daily_count: int = DAILY_FLAG_COUNT, **kwargs) -> 'QuizSession':
        if mode == MODE_DAILY:
            if not daily_seed:
                raise QuizStateError('daily mode requires a date')
            order = build_daily_order(countries, daily_seed, daily_count)
        elif mode == MODE_CLASSIC:
            order = build_classic_order(countries, rng)
        else:
            raise QuizStateError(f'unknown mode {mode!r}')
        return cls(mode, order, day=daily_seed if mode == MODE_DAILY else None, rng=rng, **kwargs)

    @property
    def finished(self) -> bool:
        return self.state in (COMPLETED, FAILED)

    @property
    def mode_label(self) -> str:
        return mode_label(self.mode, self.day)

    def present_question(self) -> Optional[Question]:
        """Expose the next flag and start its window; None once the run is completed."""
        if self.finished:
            raise QuizStateError('quiz is over')
        now = self._clock()
        if self.run_start is None:
            self.run_start = now
        if self.index >= len(self.order):
            self._finish(COMPLETED, now)
            return None

        code, answer = self.order[self.index]
        self.current = Question(
            index=self.index,
            total=len(self.order),
            code=code,
            answer=answer,
            options=self._options(answer),
        )
        self.question_start = now
        self.state = ACTIVE
        return self.current

    def _options(self, answer: str) -> List[str]:
        names = {name for _, name in self.order}
        wanted = min(OPTION_COUNT, len(names))
        opts = [answer]
        while len(opts) < wanted:
            candidate = self._rng.choice(self.order)[1]
            if candidate not in opts:
                opts.append(candidate)
        return shuffle(opts, self._rng)

    def answer(self, choice: str) -> AnswerResult:
        if self.state != ACTIVE:
            raise QuizStateError('no question is waiting for an answer')
        answer = self.current.answer
        feedback = [{'name': opt, 'correct': opt == answer} for opt in self.current.options]
        if choice == answer:
            self.score += 1
            self.index += 1
            if self.index >= len(self.order):
                self._finish(COMPLETED, self._clock())
            return AnswerResult(choice, True, answer, self.state, feedback)
        self._finish(FAILED, self._clock())
        return AnswerResult(choice, False, answer, self.state, feedback)

    def timeout(self) -> None:
        if self.state != ACTIVE:
            raise QuizStateError('no question is running')
        self._finish(FAILED, self._clock())

    def check_timeout(self, now: Optional[float] = None) -> bool:
        """Fail the run if the current question's window has run out."""
        if self.state != ACTIVE:
            return False
        now = self._clock() if now is None else now
        if now - self.question_start >= self.question_duration:
            self._finish(FAILED, now)
            return True
        return False

    def _finish(self, state: str, now: float) -> None:
        self.state = state
        self.finished_at = now
        if self.run_start is None:
            self.run_start = now

    def result(self) -> QuizResult:
        if not self.finished:
            raise QuizStateError('quiz is still running')
        return QuizResult(
            completed=self.state == COMPLETED,
            score=self.score,
            time=self.finished_at - self.run_start,
        )

    def summary(self, name: str) -> dict:
        res = self.result()
        return {
            'completed': res.completed,
            'title': 'Completed!' if res.completed else 'Game Over',
            'name': name,
            'mode': self.mode,
            'date': self.day,
            'mode_label': self.mode_label,
            'score': res.score,
            'time': round(res.time, 1),
            'avg': round(res.avg, 2),
        }

    def score_payload(self, name: str) -> dict:
        """Body for the score store, as the browser client posts it."""
        res = self.result()
        return {
            'name': name,
            'score': res.score,
            'time': res.time,
            'mode': self.mode,
            'date': self.day if self.mode == MODE_DAILY else None,
        }
