import logging
import sys

from loveletter import create_app, socketio
from loveletter.exceptions import StartupConfigError

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

try:
    app = create_app()
except StartupConfigError as exc:
    logging.getLogger('loveletter').critical(str(exc))
    sys.exit(1)


def main():
    socketio.run(app, host='0.0.0.0', port=app.config['PORT'])


if __name__ == '__main__':
    main()
