from mathduels import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so hosted game sessions get websockets in dev
    socketio.run(app, debug=True)
