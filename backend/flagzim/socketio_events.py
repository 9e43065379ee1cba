from datetime import date as date_cls
from typing import Any, Dict, Optional
import threading

from flask import current_app, request
from flask_socketio import emit
from sqlalchemy.exc import SQLAlchemyError

from flagzim import socketio, get_catalog
from flagzim.errors import QuizStateError, ValidationError
from flagzim.models import MODE_CLASSIC, MODE_DAILY, MODES
from flagzim.services.quiz import Countdown, QuizSession
from flagzim.services.scores import ranking_lines, ranking_subtitle, submit_score, top_scores, valid_day

NAMESPACE = '/ws'


class QuizContext:
    """Per-socket state: who is playing, their session and its countdown."""

    def __init__(self, name: str, session: QuizSession):
        self.name = name
        self.session = session
        self.countdown: Optional[Countdown] = None
        self.lock = threading.RLock()

    def cancel_countdown(self) -> None:
        if self.countdown is not None:
            self.countdown.cancel()
            self.countdown = None


_sid_to_quiz: Dict[str, QuizContext] = {}


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _local_day() -> str:
    return date_cls.today().isoformat()


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    ctx = _sid_to_quiz.pop(_get_sid(), None)
    if ctx:
        with ctx.lock:
            ctx.cancel_countdown()


def handle_start_quiz(data):
    data = data or {}
    name = str(data.get('name') or '').strip()
    if not name:
        emit('error', {'message': 'Name is required.'})
        return
    mode = str(data.get('mode') or MODE_CLASSIC)
    if mode not in MODES:
        emit('error', {'message': f'Unknown mode {mode}'})
        return
    catalog = get_catalog(current_app)
    if not catalog.ready:
        emit('error', {'message': 'Countries are not loaded yet.'})
        return

    cfg = current_app.config
    day = str(data.get('date') or _local_day()) if mode == MODE_DAILY else None
    if day is not None and not valid_day(day):
        emit('error', {'message': 'Date must be YYYY-MM-DD.'})
        return
    session = QuizSession.start(
        mode,
        catalog.entries,
        daily_seed=day,
        daily_count=int(cfg.get('DAILY_FLAG_COUNT', 10)),
        question_duration=float(cfg.get('QUESTION_DURATION_SEC', 10)),
    )

    sid = _get_sid()
    previous = _sid_to_quiz.pop(sid, None)
    if previous:
        with previous.lock:
            previous.cancel_countdown()
    ctx = QuizContext(name, session)
    _sid_to_quiz[sid] = ctx
    current_app.logger.info(f"[quiz-start] sid={sid} name={name} mode={session.mode_label} flags={len(session.order)}")

    emit('started', {
        'name': name,
        'mode': mode,
        'date': day,
        'mode_label': session.mode_label,
        'total': len(session.order),
    })
    with ctx.lock:
        _next_question(current_app._get_current_object(), sid, ctx)


def handle_answer(data):
    sid = _get_sid()
    ctx = _sid_to_quiz.get(sid)
    if not ctx:
        emit('error', {'message': 'No quiz in progress.'})
        return
    choice = str((data or {}).get('choice') or '')
    app = current_app._get_current_object()
    with ctx.lock:
        ctx.cancel_countdown()
        try:
            result = ctx.session.answer(choice)
        except QuizStateError as exc:
            emit('error', {'message': str(exc)})
            return
        emit('answer_result', {
            'choice': result.choice,
            'correct': result.correct,
            'answer': result.answer,
            'options': result.options,
            'score': ctx.session.score,
        })
        if ctx.session.finished:
            _game_over(app, sid, ctx)
        else:
            _next_question(app, sid, ctx)


def handle_get_ranking(data):
    data = data or {}
    mode = str(data.get('mode') or MODE_CLASSIC)
    day = str(data.get('date') or _local_day()) if mode == MODE_DAILY else None
    size = int(current_app.config.get('RANKING_SIZE', 10))
    entries = [r.to_dict() for r in top_scores(mode, day, n=size)]
    emit('ranking', {
        'mode': mode,
        'date': day,
        'subtitle': ranking_subtitle(mode, day, size),
        'entries': entries,
        'lines': ranking_lines(entries) or ['No records yet.'],
    })


def _next_question(app, sid: str, ctx: QuizContext) -> None:
    question = ctx.session.present_question()
    if question is None:
        _game_over(app, sid, ctx)
        return
    payload = question.to_dict()
    payload['score'] = ctx.session.score
    payload['duration'] = ctx.session.question_duration
    _send(sid, 'question', payload)
    _start_countdown(app, sid, ctx)


def _start_countdown(app, sid: str, ctx: QuizContext) -> None:
    ctx.cancel_countdown()
    countdown = Countdown(
        ctx.session.question_duration,
        lambda cd: _expire(app, sid, cd),
        tick=float(app.config.get('COUNTDOWN_TICK_SEC', 0.1)),
        sleep=socketio.sleep,
        label=f"sid={sid} question={ctx.session.index + 1}",
    )
    ctx.countdown = countdown
    # The tick loop only runs in a live server
    if app.config.get('TESTING'):
        countdown.start()
    else:
        countdown.start(spawn=socketio.start_background_task)


def _expire(app, sid: str, countdown: Countdown) -> None:
    ctx = _sid_to_quiz.get(sid)
    if not ctx:
        return
    with ctx.lock:
        if ctx.countdown is not countdown or countdown.cancelled or ctx.session.finished:
            app.logger.info(f"[countdown-abort] sid={sid} superseded")
            return
        ctx.countdown = None
        ctx.session.timeout()
        with app.app_context():
            _game_over(app, sid, ctx)


def _game_over(app, sid: str, ctx: QuizContext) -> None:
    ctx.cancel_countdown()
    summary = ctx.session.summary(ctx.name)
    summary['save_status'] = 'Saving score...'
    _send(sid, 'game_over', summary)
    app.logger.info(
        f"[quiz-over] sid={sid} name={ctx.name} completed={summary['completed']} score={summary['score']} time={summary['time']}"
    )
    _send(sid, 'score_saved', _auto_save(app, ctx))


def _auto_save(app, ctx: QuizContext) -> Dict[str, Any]:
    try:
        result = submit_score(ctx.session.score_payload(ctx.name))
    except (ValidationError, SQLAlchemyError) as exc:
        app.logger.warning(f"[auto-save-failed] name={ctx.name}: {exc}")
        return {'updated': None, 'error': 'Could not save score.'}
    if result['updated']:
        return {'updated': True, 'message': 'Saved to ranking!'}
    return {'updated': False, 'message': 'Not your best score (ranking unchanged).'}


def _send(sid: str, event: str, payload) -> None:
    socketio.emit(event, payload, to=sid, namespace=NAMESPACE)


def register_socketio_handlers() -> None:
    """Register the quiz controller's Socket.IO handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('start_quiz', handle_start_quiz, namespace=NAMESPACE)
    socketio.on_event('answer', handle_answer, namespace=NAMESPACE)
    socketio.on_event('get_ranking', handle_get_ranking, namespace=NAMESPACE)
