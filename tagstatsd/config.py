import json
import os

import toml
from box import Box

from tagstatsd.exceptions import ConfigurationError

SETTINGS_NAMES = ('settings', 'settings.local')


def _read_json(content):
    return json.loads(content)


def _read_toml(content):
    return toml.loads(content.decode('utf-8'))


class Settings(object):
    """Settings loaded from ``settings.*`` and ``settings.local.*`` files.

    Files are searched in ``<root_path>/config`` first and ``<root_path>``
    second. Values from later files override earlier ones.
    """
    loaders = {'.toml': _read_toml, '.json': _read_json}

    __slots__ = ['root_path', 'store', 'config_files']

    def __init__(self, root_path=None):
        self.root_path = root_path or os.getcwd()
        self.config_files = self.find_files()
        data = {}
        for path in self.config_files:
            data.update(self.read_file(path) or {})
        self.store = Box(data, box_it_up=True, frozen_box=True)

    @classmethod
    def register_loader(cls, ext, loader_func):
        """Teach Settings a new file format: ``loader_func(bytes) -> dict``."""
        if not callable(loader_func):
            raise ConfigurationError('loader for {} must be callable'.format(ext))
        if not ext.startswith('.'):
            raise ConfigurationError('extension must start with ".", got {!r}'.format(ext))
        cls.loaders[ext] = loader_func

    def find_files(self):
        for directory in (os.path.join(self.root_path, 'config'), self.root_path):
            found = tuple(
                os.path.join(directory, name + ext)
                for name in SETTINGS_NAMES
                for ext in self.loaders
                if os.path.isfile(os.path.join(directory, name + ext)))
            if found:
                return found
        return ()

    def read_file(self, path):
        loader = self.loaders[os.path.splitext(path)[1]]
        with open(path, 'rb') as f:
            return loader(f.read())

    def get(self, key, default=None):
        return self.store.get(key, default)

    def __getattr__(self, name):
        if name in self.__slots__:
            raise AttributeError(name)
        value = self.get(name)
        if value is None:
            raise KeyError("{0} does not exists".format(name))
        return value

    def __getitem__(self, item):
        value = self.get(item)
        if value is None:
            raise KeyError("{0} does not exists".format(item))
        return value


class ClientConfig(object):
    """Construction-time options of a :class:`tagstatsd.StatsClient`.

    Accepts a mapping and/or keyword arguments. Unknown keys are ignored and
    missing keys fall back to ``defaults``. The resolved values are kept in a
    frozen Box, so the config can not change once the client exists.
    """
    defaults = {
        'prefix': '',
        'instance': None,
        'tcp': False,
        'default_add_hostname': True,
        'use_backend_always': False,
        'canary_sample_rate': 0.1,
        'ephemeral_timeout': 1.0,
        'tcp_timeout': 2.0,
        'http_timeout': 2.0,
    }
    aliases = {
        'defaultAddHostname': 'default_add_hostname',
        'useBackendAlways': 'use_backend_always',
        'useOpentsdbAlways': 'use_backend_always',
        'canarySampleRate': 'canary_sample_rate',
        'ephemeralTimeout': 'ephemeral_timeout',
        'tcpTimeout': 'tcp_timeout',
        'httpTimeout': 'http_timeout',
    }

    __slots__ = ['_store']

    def __init__(self, options=None, **kwargs):
        values = dict(self.defaults)
        merged = dict(options or {})
        merged.update(kwargs)
        for key, value in merged.items():
            key = self.aliases.get(key, key)
            if key in values and value is not None:
                values[key] = value
        values['prefix'] = self.normalize_prefix(values['prefix'])
        instance = values['instance']
        if isinstance(instance, list):
            values['instance'] = tuple(instance)
        object.__setattr__(self, '_store', Box(values, frozen_box=True))

    @classmethod
    def from_settings(cls, settings, section='statsd', **overrides):
        data = settings.get(section) or {}
        if hasattr(data, 'to_dict'):
            data = data.to_dict()
        return cls(data, **overrides)

    @staticmethod
    def normalize_prefix(prefix):
        if not prefix:
            return ''
        prefix = str(prefix)
        return prefix if prefix.endswith('.') else prefix + '.'

    def __getattr__(self, name):
        if name == '_store':
            raise AttributeError(name)
        try:
            return self._store[name]
        except KeyError:
            raise AttributeError(name)

    def __setattr__(self, name, value):
        raise AttributeError('ClientConfig is read-only')

    def get(self, key, default=None):
        return self._store.get(key, default)

    def to_dict(self):
        return self._store.to_dict()

    def __repr__(self):
        return '<ClientConfig %r>' % (self.to_dict(),)
