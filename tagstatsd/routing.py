import enum

from tagstatsd.deploy import DeployType
from tagstatsd.log import logger
from tagstatsd.transport import make_socket, parse_instance

LOCAL_HOST = '127.0.0.1'
LOCAL_OPENTSDB_PORT = 18127
LOCAL_CARBON_PORT = 18125


class Destination(enum.Enum):
    INSTANCE = 'instance'
    LOCAL_OPENTSDB = 'local_opentsdb'
    LOCAL_CARBON = 'local_carbon'


class SocketRouter(object):
    """Owns the transports of a client and picks one per stat.

    An explicit ``instance`` always wins. Otherwise anything carrying
    dimensional information (tags, a canary/control deploy type, or
    ``use_backend_always``) goes to the tag-aware local OpenTSDB daemon and
    plain stats go to the local Carbon daemon.
    """

    def __init__(self, config, deploy_type=DeployType.NONE, socket_factory=make_socket):
        self.deploy_type = deploy_type
        self.use_backend_always = config.use_backend_always
        self.sockets = {}
        self._closed = False

        options = dict(
            tcp=config.tcp,
            ephemeral_timeout=config.ephemeral_timeout,
            tcp_timeout=config.tcp_timeout,
            http_timeout=config.http_timeout,
        )
        if config.instance:
            host, port = parse_instance(config.instance)
            self.sockets[Destination.INSTANCE] = socket_factory(host, port, **options)
        self.sockets[Destination.LOCAL_OPENTSDB] = socket_factory(LOCAL_HOST, LOCAL_OPENTSDB_PORT, **options)
        self.sockets[Destination.LOCAL_CARBON] = socket_factory(LOCAL_HOST, LOCAL_CARBON_PORT, **options)
        logger.debug('statsd sockets initialized', sockets=[repr(s) for s in self.sockets.values()])

    @property
    def closed(self):
        return self._closed

    def select(self, tags=None):
        if Destination.INSTANCE in self.sockets:
            return Destination.INSTANCE
        if self.deploy_type or tags or self.use_backend_always:
            return Destination.LOCAL_OPENTSDB
        return Destination.LOCAL_CARBON

    def get_socket(self, tags=None):
        return self.sockets[self.select(tags)]

    def close(self):
        if self._closed:
            return
        self._closed = True
        for destination, sock in self.sockets.items():
            try:
                sock.close()
            except Exception:
                logger.exception('failed to close %s socket', destination.value)
