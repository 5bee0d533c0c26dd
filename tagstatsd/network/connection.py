import os
import socket
import threading
from queue import Empty, Full, LifoQueue

from tagstatsd.exceptions import ConnectionError


class Connection(object):
    """A lazily connected TCP stream to a statsd daemon"""
    description_format = "Connection<host:%(host)s,port:%(port)s>"

    def __init__(self, host, port, socket_connect_timeout=None, socket_timeout=None):
        self.pid = os.getpid()
        self.host = host
        self.port = int(port)
        self.socket_timeout = socket_timeout
        self.socket_connect_timeout = socket_connect_timeout or socket_timeout
        self._sock = None

    def __repr__(self):
        return self.description_format % {'host': self.host, 'port': self.port}

    @property
    def connected(self):
        return self._sock is not None

    def connect(self):
        """Connects to the server if not already connected"""
        if self._sock:
            return
        try:
            self._sock = self._connect()
        except socket.error as e:
            raise ConnectionError(self._error_message(e))

    def _connect(self):
        error = None
        for family, socktype, proto, _, address in socket.getaddrinfo(
                self.host, self.port, socket.AF_UNSPEC, socket.SOCK_STREAM):
            sock = None
            try:
                sock = socket.socket(family, socktype, proto)
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                sock.settimeout(self.socket_connect_timeout)
                sock.connect(address)
                sock.settimeout(self.socket_timeout)
                return sock
            except socket.error as e:
                error = e
                if sock is not None:
                    sock.close()
        if error is not None:
            raise error
        raise socket.error("socket.getaddrinfo returned an empty list")

    def _error_message(self, exception):
        # args for socket.error can either be (errno, "message")
        # or just "message"
        if len(exception.args) == 1:
            return "Error connecting to %s:%s. %s." % \
                (self.host, self.port, exception.args[0])
        return "Error %s connecting to %s:%s. %s." % \
            (exception.args[0], self.host, self.port, exception.args[1])

    def disconnect(self):
        """Disconnects from the server"""
        if self._sock is None:
            return
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
            self._sock.close()
        except socket.error:
            pass
        self._sock = None

    def write(self, data):
        if isinstance(data, str):
            data = data.encode('utf-8')
        self.connect()
        try:
            self._sock.sendall(data)
        except socket.error as e:
            self.disconnect()
            raise ConnectionError("Error writing to %s:%s. %s." % (self.host, self.port, e))


class BlockingConnectionPool(object):
    """
    Thread-safe blocking connection pool.

    When every connection is in use, ``get_connection`` waits up to
    ``timeout`` seconds for one to be released before raising
    ``ConnectionError``. A last-in first-out queue pre-filled with ``None``
    makes sure new connections are only opened on demand::

        >>> pool = BlockingConnectionPool(max_connections=4, host='127.0.0.1', port=18125)
        >>> conn = pool.get_connection()
        >>> try:
        ...     conn.write(b'x:1|c\\n')
        ... finally:
        ...     pool.release(conn)
    """

    def __init__(self, max_connections=4, timeout=6,
                 connection_class=Connection, queue_class=LifoQueue,
                 **connection_kwargs):
        self.connection_class = connection_class
        self.queue_class = queue_class
        self.max_connections = max_connections
        self.timeout = timeout
        self.connection_kwargs = connection_kwargs
        self.pid = None
        self.pool = None
        self._connections = None
        self._check_lock = threading.Lock()
        self.reset()

    def __repr__(self):
        return "%s<%s>" % (
            type(self).__name__,
            self.connection_class.description_format % self.connection_kwargs,
        )

    def reset(self):
        self.pid = os.getpid()
        self.pool = self.queue_class(self.max_connections)
        while True:
            try:
                self.pool.put_nowait(None)
            except Full:
                break
        # actual connection instances, so they can be disconnected later
        self._connections = []

    def _checkpid(self):
        if self.pid != os.getpid():
            with self._check_lock:
                if self.pid == os.getpid():
                    # another thread already did the work while we waited
                    # on the lock.
                    return
                self.disconnect()
                self.reset()

    def make_connection(self):
        connection = self.connection_class(**self.connection_kwargs)
        self._connections.append(connection)
        return connection

    def get_connection(self):
        self._checkpid()
        try:
            connection = self.pool.get(block=True, timeout=self.timeout)
        except Empty:
            raise ConnectionError("No connection available.")

        if connection is None:
            connection = self.make_connection()
        return connection

    def release(self, connection):
        self._checkpid()
        if connection.pid != self.pid:
            return
        try:
            self.pool.put_nowait(connection)
        except Full:
            # the pool has been reset() after a fork, drop the connection
            pass

    def disconnect(self):
        for connection in self._connections:
            connection.disconnect()
