"""
StatsD client

Stats are written in the statsd line protocol. Tags are folded into the
stat name (``name._t_key.value``) so that a tag-aware local daemon can
split them out again, while untagged stats keep a flat name:

    <prefix><name>[._t_<key>.<value>]*:<value>|<type>[|@<rate>]

"""
import datetime
import time
from functools import wraps

from tagstatsd.config import ClientConfig
from tagstatsd.deploy import DeployTypeResolver, current_hostname
from tagstatsd.exceptions import InvalidMetricError
from tagstatsd.log import logger
from tagstatsd.routing import SocketRouter
from tagstatsd.sampling import SamplingPolicy
from tagstatsd.tags import TagEncoder
from tagstatsd.transport import make_socket
from tagstatsd.validation import validate_encoded, validate_name

__all__ = ['StatsClient', 'Timer', 'format_value']


def format_value(value):
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def never_raises(func):
    """Log and swallow anything an emitting method raises."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except Exception:
            logger.exception('failed to emit stat', method=func.__name__)
    return wrapper


class StatsClient(object):
    """A client for statsd.

    Every emitting method accepts the send options ``sample_rate``, ``tags``
    and ``add_hostname``. Nothing ever raises into the caller: invalid stats
    and transport failures are logged and dropped.
    """

    def __init__(self, options=None, deploy_type_resolver=None, hostname=None,
                 socket_factory=make_socket, random_func=None, **kwargs):
        if isinstance(options, ClientConfig):
            self.config = options
        else:
            self.config = ClientConfig(options, **kwargs)
        self.hostname = hostname or current_hostname()
        self.deploy_type = (deploy_type_resolver or DeployTypeResolver()).resolve()
        self.tag_encoder = TagEncoder(self.hostname, self.deploy_type, self.config.default_add_hostname)
        self.sampling = SamplingPolicy(self.deploy_type, self.config.canary_sample_rate, random_func)
        self.router = SocketRouter(self.config, self.deploy_type, socket_factory)

    @property
    def prefix(self):
        return self.config.prefix

    def __enter__(self):
        return self

    def __exit__(self, typ, value, tb):
        self.close()

    def _emit(self, name, value, options):
        self.send({self.prefix + name: value}, **options)

    @never_raises
    def gauge(self, name, value, **options):
        """Set a gauge to an absolute value: ``age:10|g``."""
        self._emit(name, '%s|g' % format_value(value), options)

    @never_raises
    def gauge_delta(self, name, delta, **options):
        """Move a gauge relative to its current value: ``age:+1|g``, ``age:-1|g``.

        A signed value is always relative, which is why ``gauge`` can not be
        used to change a gauge by a negative amount.
        """
        sign = '+' if delta >= 0 else '-'
        self._emit(name, '%s%s|g' % (sign, format_value(abs(delta))), options)

    @never_raises
    def set(self, name, value, **options):
        self._emit(name, '%s|s' % format_value(value), options)

    @never_raises
    def counter(self, name, delta, **options):
        self._emit(name, '%s|c' % format_value(delta), options)

    @never_raises
    def increment(self, name, delta=1, **options):
        self.counter(name, abs(delta or 1), **options)

    @never_raises
    def decrement(self, name, delta=1, **options):
        self.counter(name, -abs(delta or 1), **options)

    @never_raises
    def timing(self, name, value, **options):
        """Send timing information.

        `value` is either a duration in milliseconds, a ``timedelta``, or a
        ``datetime`` marking the start of the timed operation.
        """
        if isinstance(value, datetime.datetime):
            value = datetime.datetime.now(value.tzinfo) - value
        if isinstance(value, datetime.timedelta):
            value = int(round(value.total_seconds() * 1000))
        self._emit(name, '%s|ms' % format_value(value), options)

    @never_raises
    def histogram(self, name, value, **options):
        self._emit(name, '%s|h' % format_value(value), options)

    def timer(self, name, **options):
        return Timer(self, name, **options)

    def add_tags_to_stat(self, stat, tags=None, add_hostname=False):
        return self.tag_encoder.encode(stat, tags, add_hostname)

    def get_destination(self, tags=None):
        return self.router.select(tags)

    def send(self, data, sample_rate=None, tags=None, add_hostname=False):
        """Send a ``{stat: value}`` mapping, values already carrying their type."""
        try:
            sampled = self.sampling.apply(data, sample_rate)
            if sampled is None:
                return
            tags = tags or {}
            encode = self.tag_encoder.should_encode(tags, self.config.use_backend_always)
            sock = self.router.get_socket(tags)
            for stat, value in sampled.items():
                try:
                    validate_name(stat)
                    if encode:
                        stat = self.add_tags_to_stat(stat, tags, add_hostname)
                    validate_encoded(stat)
                except InvalidMetricError as ex:
                    logger.warning('dropping stat: %s', ex, stat=ex.stat)
                    continue
                sock.send('%s:%s' % (stat, value))
        except Exception:
            logger.exception('failed to send stats', stats=data)

    def close(self):
        self.router.close()


class Timer(object):
    """A context manager/decorator for StatsClient.timing()."""

    def __init__(self, client, name, **options):
        self.client = client
        self.name = name
        self.options = options
        self.ms = None
        self._start = None

    def __enter__(self):
        self._start = time.monotonic()
        return self

    def __exit__(self, typ, value, tb):
        self.ms = int(round(1000 * (time.monotonic() - self._start)))
        self.client.timing(self.name, self.ms, **self.options)

    def __call__(self, func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with Timer(self.client, self.name, **self.options):
                return func(*args, **kwargs)
        return wrapper
