import logging
import sys

from flagzim import create_app, socketio, load_reference_data
from flagzim.errors import UpstreamFetchError

app = create_app()


def boot():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    try:
        load_reference_data(app)
    except UpstreamFetchError as exc:
        app.logger.error(f"[boot] cannot start without country data: {exc}")
        sys.exit(1)
    host = app.config['HOST']
    port = app.config['PORT']
    app.logger.info(f"[boot] Flagzim backend running on http://{host}:{port}")
    socketio.run(app, host=host, port=port, debug=app.config.get('DEBUG', False), allow_unsafe_werkzeug=True)


if __name__ == '__main__':
    boot()
