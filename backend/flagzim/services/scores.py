import math
import threading
import time
from datetime import datetime
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from flagzim import db
from flagzim.errors import PersistenceReadError, ValidationError
from flagzim.models import MODE_CLASSIC, MODE_DAILY, MODES, ScoreRecord, make_key

# score_record.score is a 32-bit INTEGER column
MAX_SCORE = 2**31 - 1
DEFAULT_TIME = 999999
DEFAULT_TOP_N = 10

# A submit is a read-modify-write over one key; serialize them per process.
_submit_lock = threading.Lock()


def _number(value, default):
    if value is None:
        return default
    if isinstance(value, bool):
        return math.nan
    try:
        if isinstance(value, (int, float)):
            return float(value)
        return float(str(value).strip())
    except (ValueError, OverflowError):
        return math.nan


def valid_day(value: str) -> bool:
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        return False
    return len(value) == 10


def build_candidate(data) -> ScoreRecord:
    """Validate a submission payload and turn it into an unsaved ScoreRecord."""
    data = data or {}
    if not isinstance(data, dict):
        raise ValidationError('invalid payload')
    name = str(data.get('name') or '').strip()
    if not name:
        raise ValidationError('name required')

    score = _number(data.get('score'), 0)
    if not math.isfinite(score) or score < 0 or score > MAX_SCORE or score != int(score):
        raise ValidationError('invalid score')
    elapsed = _number(data.get('time'), DEFAULT_TIME)
    if not math.isfinite(elapsed) or elapsed < 0:
        raise ValidationError('invalid time')

    mode = str(data.get('mode') or MODE_CLASSIC)
    if mode not in MODES:
        raise ValidationError('invalid mode')

    date = data.get('date')
    date = None if date is None else str(date).strip()
    if mode == MODE_DAILY:
        if not date:
            raise ValidationError('daily requires date YYYY-MM-DD')
        if not valid_day(date):
            raise ValidationError('invalid date')
    else:
        date = None

    return ScoreRecord(
        key=make_key(name, mode, date),
        name=name,
        score=int(score),
        time=elapsed,
        mode=mode,
        date=date,
        created_at=int(time.time() * 1000),
    )


def _find(key: str) -> Optional[ScoreRecord]:
    try:
        return ScoreRecord.query.filter_by(key=key).first()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceReadError(str(exc)) from exc


def submit_score(data) -> dict:
    """Store the submission if it is the player's best for its key.

    Returns ``{'updated': bool}``. Raises ValidationError on a bad payload.
    """
    candidate = build_candidate(data)
    with _submit_lock:
        try:
            existing = _find(candidate.key)
        except PersistenceReadError as exc:
            current_app.logger.warning(f"[score-read-failed] key={candidate.key} treating as empty: {exc}")
            existing = None

        if existing is None:
            db.session.add(candidate)
            updated = True
        elif candidate.is_better_than(existing):
            existing.replace_with(candidate)
            db.session.add(existing)
            updated = True
        else:
            updated = False

        if updated:
            try:
                db.session.commit()
            except SQLAlchemyError:
                db.session.rollback()
                raise

    current_app.logger.info(
        f"[score-submit] key={candidate.key} score={candidate.score} time={candidate.time:.2f} updated={updated}"
    )
    return {'updated': updated}


def top_scores(mode: str, date: Optional[str] = None, n: int = DEFAULT_TOP_N) -> List[ScoreRecord]:
    """Best records for a mode (and day), score desc then time asc.

    Equal (score, time) pairs keep insertion order (row id). A daily query
    without a date is empty.
    """
    if mode == MODE_DAILY and not date:
        return []
    query = ScoreRecord.query.filter_by(mode=mode)
    if mode == MODE_DAILY:
        query = query.filter_by(date=date)
    query = query.order_by(ScoreRecord.score.desc(), ScoreRecord.time.asc(), ScoreRecord.id.asc()).limit(n)
    try:
        return query.all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[ranking-read-failed] mode={mode} date={date} treating as empty: {exc}")
        return []


def ranking_subtitle(mode: str, date: Optional[str] = None, n: int = DEFAULT_TOP_N) -> str:
    if mode == MODE_DAILY:
        return f"Top {n} - Daily ({date})"
    return f"Top {n} - Classic"


def ranking_lines(records) -> List[str]:
    return [
        f"{rank}. {r['name']} - {r['score']} pts - {float(r['time']):.1f}s"
        for rank, r in enumerate(records, start=1)
    ]
