import logging

from spreadwars import create_app, socketio

app = create_app()

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    # Use SocketIO server so the /ws push channel works in dev
    socketio.run(app, host='0.0.0.0', port=8080, debug=True)
