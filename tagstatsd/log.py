import inspect
import json
import os
import platform
import sys
import time
import traceback

_start_time = time.time()


class LoggerLevel:
    CRITICAL = 50
    ERROR = 40
    WARNING = 30
    INFO = 20
    DEBUG = 10
    NOTSET = 0
    name_level_map = {
        'CRITICAL': CRITICAL,
        'FATAL': CRITICAL,
        'ERROR': ERROR,
        'WARN': WARNING,
        'WARNING': WARNING,
        'INFO': INFO,
        'DEBUG': DEBUG,
        'NOTSET': NOTSET,
    }

    @classmethod
    def get_levelno(cls, name, default=0):
        return cls.name_level_map.get(name.strip().upper(), default)


def dump_value(obj):
    """Turn structured log data into something json.dumps accepts."""
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, bytes):
        return obj.decode('utf-8', 'replace')
    if isinstance(obj, (tuple, list, set, frozenset)):
        return [dump_value(x) for x in obj]
    if isinstance(obj, dict):
        return dict((str(k), dump_value(v)) for k, v in obj.items())
    if hasattr(obj, 'to_dict'):
        return dump_value(obj.to_dict())
    return str(obj)


class LogRecord(object):
    def __init__(self, name, level, msg, args, exc_info, debuginfo='', **kwargs):
        ct = time.time()
        self.name = name
        self.msg = msg
        self.args = args
        self.levelname = level
        self.levelno = LoggerLevel.get_levelno(level, 60)
        self.exc_info = exc_info
        self.hostname = platform.node()
        self.process = os.getpid()
        self.created = ct
        self.msecs_since_start = (self.created - _start_time) * 1000
        self.debuginfo = debuginfo
        self.kwargs = kwargs

    def __repr__(self):
        return '<LogRecord: %s, %s, "%s">' % (self.name, self.levelname, self.msg)

    def get_message(self):
        msg = str(self.msg)
        if self.args:
            msg = msg % self.args
        if self.exc_info:
            if isinstance(self.exc_info, BaseException):
                exc_str = '<{}>: {}'.format(type(self.exc_info).__name__, str(self.exc_info))
            elif isinstance(self.exc_info, (tuple, list)):
                exc_str = ''.join(traceback.format_exception(*self.exc_info))
            else:
                exc_str = str(self.exc_info)
            msg = '{}\n{}'.format(msg, exc_str.rstrip('\n'))
        return msg

    def to_dict(self):
        return dict(
            name=self.name,
            level=self.levelname,
            created=self.created,
            hostname=self.hostname,
            process=self.process,
            debuginfo=self.debuginfo,
            message=self.get_message(),
            data=dict((k, dump_value(v)) for k, v in self.kwargs.items()),
        )


class BaseHandler(object):
    level = 'DEBUG'
    levelno = LoggerLevel.DEBUG

    def emit(self, record):
        raise NotImplementedError

    def handle_error(self, record):
        if sys.stderr:
            t, v, tb = sys.exc_info()
            try:
                sys.stderr.write('--- Logging error ---\n')
                traceback.print_exception(t, v, tb, None, sys.stderr)
                sys.stderr.write('Message: %r\nArguments: %s\n' % (record.msg, record.args))
            except OSError:  # pragma: no cover
                pass
            finally:
                del t, v, tb


class StreamHandler(BaseHandler):
    terminator = '\n'
    default_stream = 'stdout'

    def __init__(self, stream=None, format=None, level="DEBUG", **kwargs):
        self.stream = stream
        self.format_str = format or "[{created}] [{hostname}.{process}] [{level}] [{debuginfo}] [{message}]"
        self.level = level
        self.levelno = LoggerLevel.get_levelno(self.level, 0)

    def get_stream(self):
        # resolved lazily so pytest's capsys sees the output
        return self.stream or getattr(sys, self.default_stream)

    def flush(self):
        stream = self.get_stream()
        if stream and hasattr(stream, "flush"):
            stream.flush()

    def emit(self, record):
        try:
            msg = self.make_message(record)
            self.get_stream().write(msg + self.terminator)
            self.flush()
        except Exception:
            self.handle_error(record)

    def make_message(self, record):
        data = record.to_dict()
        data['created'] = time.strftime("%Y-%m-%d %H:%M:%S %z", time.localtime(data['created']))
        extra_data = data.pop('data')
        msg = self.format_str.format(**data)
        extra = ' '.join(map(lambda x: "[{} = {}]".format(x[0], json.dumps(x[1])), extra_data.items()))
        if extra:
            msg = ' '.join([msg, extra])
        return msg

    def __repr__(self):
        return '<%s %s(%s)>' % (self.__class__.__name__, self.default_stream, self.level)


class StdoutHandler(StreamHandler):
    default_stream = 'stdout'


class StderrHandler(StreamHandler):
    default_stream = 'stderr'


class Logger(object):
    handler_class_map = {
        'stdout': StdoutHandler,
        'stderr': StderrHandler,
    }

    def __init__(self, name="", **kwargs):
        self.name = name
        self.handlers = []
        self.dev_mode = kwargs.get('dev_mode', True)

    def init(self, config):
        """Attach handlers described by a settings section.

        The section lists handler names under ``handlers``; each name points
        to a sub-section carrying ``handler_type`` and handler options.
        """
        for handler in config.get('handlers', []):
            conf = dict(config.get(handler, {}))
            handler_type = conf.pop('handler_type', '')
            if handler_type not in self.handler_class_map:
                continue
            self.add(handler_type, **conf)

    def add(self, handler, level="DEBUG", log_format=None, **kwargs):
        h_cls = self.handler_class_map.get(handler)
        if not h_cls:
            raise Exception('no handler class for {}'.format(handler))
        h = h_cls(format=log_format, level=level, **kwargs)
        self.handlers.append(h)
        return h

    def clear(self):
        self.handlers = []

    def _filter_handlers(self, level):
        levelno = LoggerLevel.get_levelno(level)
        return list(filter(lambda x: levelno >= x.levelno, self.handlers))

    def get_debuginfo(self):
        for frame in inspect.getouterframes(inspect.currentframe(), 1):
            if not frame.filename.endswith(os.path.join('tagstatsd', 'log.py')):
                return '{}:{}'.format(frame.filename, frame.lineno)
        return 'no-frameinfo'

    def log(self, level, message, args, kwargs):
        handlers = self._filter_handlers(level)
        if not handlers:
            return None

        exc_info = kwargs.pop('exc_info', None)
        if exc_info is True:
            exc_info = sys.exc_info()
            if exc_info[0] is None:
                exc_info = None

        debuginfo = self.get_debuginfo() if level == "DEBUG" else ":0"
        record = LogRecord(self.name, level, message, args, exc_info, debuginfo=debuginfo, **kwargs)
        for handler in handlers:
            handler.emit(record)
        return record

    def debug(self, message, *args, **kwargs):
        if self.dev_mode:
            self.log('DEBUG', message, args, kwargs)

    def info(self, message, *args, **kwargs):
        self.log('INFO', message, args, kwargs)

    def warning(self, message, *args, **kwargs):
        self.log('WARNING', message, args, kwargs)

    def error(self, message, *args, **kwargs):
        self.log('ERROR', message, args, kwargs)

    def critical(self, message, *args, **kwargs):
        self.log('CRITICAL', message, args, kwargs)

    def exception(self, message, *args, exc_info=True, **kwargs):
        self.error(message, *args, exc_info=exc_info, **kwargs)


logger = Logger("tagstatsd")
