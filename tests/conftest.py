import pytest

from tagstatsd import StatsClient
from tagstatsd.deploy import DeployType
from tagstatsd.log import logger


class RecordingSocket(object):
    def __init__(self, host, port, **kwargs):
        self.host = host
        self.port = port
        self.kwargs = kwargs
        self.lines = []
        self.closed = False

    def send(self, line):
        self.lines.append(line)

    def close(self):
        self.closed = True


class SocketRecorder(object):
    """Socket factory handing out RecordingSockets keyed by port."""

    def __init__(self):
        self.sockets = []

    def __call__(self, host, port, **kwargs):
        sock = RecordingSocket(host, port, **kwargs)
        self.sockets.append(sock)
        return sock

    def by_port(self, port):
        return [s for s in self.sockets if s.port == port][0]

    @property
    def opentsdb(self):
        return self.by_port(18127)

    @property
    def carbon(self):
        return self.by_port(18125)

    def all_lines(self):
        return [line for s in self.sockets for line in s.lines]


class FixedResolver(object):
    def __init__(self, deploy_type=DeployType.NONE):
        self.deploy_type = deploy_type

    def resolve(self):
        return self.deploy_type


@pytest.fixture
def recorder():
    return SocketRecorder()


@pytest.fixture
def make_client(recorder):
    clients = []

    def factory(deploy_type=DeployType.NONE, hostname='web1', random_func=None, **options):
        options.setdefault('default_add_hostname', False)
        client = StatsClient(options, deploy_type_resolver=FixedResolver(deploy_type),
                             hostname=hostname, socket_factory=recorder, random_func=random_func)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def log_output(capsys):
    logger.clear()
    logger.add('stdout', level='DEBUG')
    yield capsys
    logger.clear()
