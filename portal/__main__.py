"""
Entry point: python -m portal

With the default eventlet async mode every request runs as a green thread
on one OS thread, so the standard library is patched before anything
(requests included) imports socket.
"""
import os


def patch_for_async_mode(async_mode):
    if async_mode != 'eventlet':
        return False
    import eventlet
    eventlet.monkey_patch()
    return True


if __name__ == '__main__':
    patch_for_async_mode(os.environ.get('SOCKETIO_ASYNC_MODE', 'eventlet'))

    from portal.app import main
    main()
