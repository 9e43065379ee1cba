from flask import Blueprint, jsonify, request, current_app
from flagzim import get_catalog
from flagzim.errors import ValidationError
from flagzim.models import MODE_CLASSIC
from flagzim.services.scores import submit_score, top_scores


ranking = Blueprint('ranking', __name__)


@ranking.route('/countries', methods=['GET'])
def list_countries():
    catalog = get_catalog(current_app)
    if not catalog.ready:
        return jsonify({'error': 'countries not loaded'}), 503
    return jsonify([list(entry) for entry in catalog.entries])


@ranking.route('/ranking', methods=['GET'])
def get_ranking():
    mode = request.args.get('mode') or MODE_CLASSIC
    date = request.args.get('date') or None
    size = int(current_app.config.get('RANKING_SIZE', 10))
    records = top_scores(mode, date, n=size)
    return jsonify([r.to_dict() for r in records])


@ranking.route('/score', methods=['POST'])
def post_score():
    data = request.get_json(silent=True) or {}
    try:
        result = submit_score(data)
    except ValidationError as exc:
        current_app.logger.info(f"[score-rejected] {exc}")
        return jsonify({'error': str(exc)}), 400
    return jsonify(result)
