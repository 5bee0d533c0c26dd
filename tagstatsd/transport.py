"""
Transports for statsd lines.

Every transport exposes ``send(line)`` and ``close()``. Sends are best
effort: nothing is retried and nothing is confirmed.
"""
import re
import socket
import threading
import time
from queue import Empty, Full, Queue

import requests

from tagstatsd.exceptions import ConfigurationError, TransportError
from tagstatsd.log import logger
from tagstatsd.network.connection import BlockingConnectionPool

DEFAULT_PORT = 18125

HTTP_RE = re.compile(r'^http(s?)://', re.IGNORECASE)


class Socket(object):
    def __init__(self, host, port, **kwargs):
        self.host = host
        self.port = int(port)
        self._closed = False

    @property
    def closed(self):
        return self._closed

    def send(self, line):
        raise NotImplementedError

    def close(self):
        self._closed = True

    def __repr__(self):
        return '<%s %s:%s>' % (self.__class__.__name__, self.host, self.port)


class EphemeralSocket(Socket):
    """UDP socket opened on demand and closed again once idle."""

    def __init__(self, host, port, ephemeral_timeout=1.0, **kwargs):
        super(EphemeralSocket, self).__init__(host, port)
        self._addr = (self.host, self.port)
        self._sock = None
        self._lock = threading.Lock()
        self._timer = None
        self._last_used = 0
        self.ephemeral_timeout = ephemeral_timeout

    @property
    def sock(self):
        if not self._sock:
            family = socket.AF_INET6 if ':' in self.host else socket.AF_INET
            self._sock = socket.socket(family, socket.SOCK_DGRAM)
        return self._sock

    def _start_timer(self, delay):
        # caller holds self._lock
        self._timer = threading.Timer(delay, self._check_idle)
        self._timer.daemon = True
        self._timer.start()

    def _check_idle(self):
        with self._lock:
            self._timer = None
            if self._sock is None:
                return
            idle = time.monotonic() - self._last_used
            if idle < self.ephemeral_timeout:
                self._start_timer(self.ephemeral_timeout - idle)
                return
            self._sock.close()
            self._sock = None

    def send(self, line):
        data = line.encode('utf-8') if isinstance(line, str) else line
        with self._lock:
            try:
                self.sock.sendto(data, self._addr)
            except socket.error as e:
                raise TransportError('udp send to %s:%s failed: %s' % (self.host, self.port, e))
            self._last_used = time.monotonic()
            if self._timer is None and self.ephemeral_timeout:
                self._start_timer(self.ephemeral_timeout)

    def close(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._sock is not None:
                self._sock.close()
                self._sock = None
        super(EphemeralSocket, self).close()


class QueuedSocket(Socket):
    """Hands lines to a daemon worker thread so ``send`` never waits on the network.

    The queue is bounded; when it is full the line is dropped and
    ``send`` raises ``TransportError``.
    """
    max_queue_size = 10000
    worker_name = 'tagstatsd-worker'

    def __init__(self, host, port, timeout=2.0, max_queue_size=None, **kwargs):
        super(QueuedSocket, self).__init__(host, port)
        self.timeout = timeout
        self.queue = Queue(max_queue_size or self.max_queue_size)
        self._worker = threading.Thread(target=self._run, name=self.worker_name, daemon=True)
        self._worker.start()

    def write(self, line):
        raise NotImplementedError

    def send(self, line):
        if self._closed:
            raise TransportError('%r is closed' % self)
        try:
            self.queue.put_nowait(line)
        except Full:
            raise TransportError('send queue for %r is full' % self)

    def _run(self):
        while True:
            line = self.queue.get()
            try:
                if line is None:
                    return
                self.write(line)
            except Exception as ex:
                logger.warning('failed to write stat to %r', self, error=str(ex))
            finally:
                self.queue.task_done()

    def _discard_pending(self):
        discarded = 0
        while True:
            try:
                self.queue.get_nowait()
            except Empty:
                return discarded
            self.queue.task_done()
            discarded += 1

    def flush(self):
        """Block until every queued line has been handed to the network."""
        self.queue.join()

    def close(self):
        if self._closed:
            return
        super(QueuedSocket, self).close()
        try:
            self.queue.put(None, timeout=self.timeout)
        except Full:
            logger.warning('dropping %d queued stats on close', self._discard_pending(), socket=repr(self))
            self.queue.put_nowait(None)
        self._worker.join(self.timeout)


class TCPSocket(QueuedSocket):
    """Newline-delimited lines over a pooled TCP connection."""
    terminator = b'\n'
    worker_name = 'tagstatsd-tcp'

    def __init__(self, host, port, tcp_timeout=2.0, max_connections=1, **kwargs):
        self.pool = BlockingConnectionPool(
            max_connections=max_connections, timeout=tcp_timeout,
            host=host, port=port,
            socket_connect_timeout=tcp_timeout, socket_timeout=tcp_timeout)
        super(TCPSocket, self).__init__(host, port, timeout=tcp_timeout, **kwargs)

    def write(self, line):
        conn = self.pool.get_connection()
        try:
            conn.write(line.encode('utf-8') + self.terminator)
        finally:
            self.pool.release(conn)

    def close(self):
        super(TCPSocket, self).close()
        self.pool.disconnect()


class HttpSocket(QueuedSocket):
    """Lines POSTed to an HTTP endpoint."""
    worker_name = 'tagstatsd-http'

    def __init__(self, host, port, http_timeout=2.0, session=None, **kwargs):
        self.url = '{}:{}'.format(host.rstrip('/'), int(port))
        self.session = session or requests.Session()
        super(HttpSocket, self).__init__(host, port, timeout=http_timeout, **kwargs)

    def write(self, line):
        response = self.session.post(self.url, data=line.encode('utf-8'), timeout=self.timeout,
                                     headers={'Content-Type': 'text/plain'})
        response.raise_for_status()

    def close(self):
        if self._closed:
            return
        super(HttpSocket, self).close()
        self.session.close()


def is_http_host(host):
    return bool(host) and isinstance(host, str) and HTTP_RE.match(host) is not None


def make_socket(host, port, tcp=False, **kwargs):
    """Pick the transport from the configuration alone.

    ``tcp`` wins, then an ``http(s)://`` host, and UDP is the fallback.
    """
    if tcp:
        return TCPSocket(host, port, **kwargs)
    if is_http_host(host):
        return HttpSocket(host, port, **kwargs)
    return EphemeralSocket(host, port, **kwargs)


def _parse_port(value, instance):
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError('invalid port in instance {!r}'.format(instance))
    if not 0 < port < 65536:
        raise ConfigurationError('port out of range in instance {!r}'.format(instance))
    return port


def parse_instance(instance):
    """Return ``(host, port)`` for an explicit destination.

    Accepts ``http(s)://host[:port]``, ``host:port``, ``host`` or a
    ``(host, port)`` sequence.
    """
    if isinstance(instance, (tuple, list)):
        if not instance or not instance[0]:
            raise ConfigurationError('instance {!r} has no host'.format(instance))
        port = instance[1] if len(instance) > 1 and instance[1] not in (None, '') else DEFAULT_PORT
        return str(instance[0]), _parse_port(port, instance)

    if not isinstance(instance, str) or not instance:
        raise ConfigurationError('unsupported instance {!r}'.format(instance))

    match = HTTP_RE.match(instance)
    if match:
        rest = instance[match.end():]
        netloc = rest.split('/', 1)[0]
        host, sep, port = netloc.rpartition(':')
        if sep and port.isdigit():
            return instance[:match.end()] + host, _parse_port(port, instance)
        return instance[:match.end()] + netloc, 443 if match.group(1) else 80

    host, sep, port = instance.rpartition(':')
    if not sep:
        return instance, DEFAULT_PORT
    if not host:
        raise ConfigurationError('instance {!r} has no host'.format(instance))
    return host, _parse_port(port or DEFAULT_PORT, instance)
