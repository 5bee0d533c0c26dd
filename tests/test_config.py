import json

import pytest

from tagstatsd.config import ClientConfig, Settings
from tagstatsd.exceptions import ConfigurationError


def test_defaults():
    config = ClientConfig()
    assert config.prefix == ''
    assert config.instance is None
    assert config.tcp is False
    assert config.default_add_hostname is True
    assert config.use_backend_always is False
    assert config.canary_sample_rate == 0.1


@pytest.mark.parametrize('prefix,expected', [
    ('', ''),
    (None, ''),
    ('myapp', 'myapp.'),
    ('myapp.', 'myapp.'),
    ('a.b', 'a.b.'),
])
def test_prefix_normalization(prefix, expected):
    assert ClientConfig(prefix=prefix).prefix == expected


def test_camel_case_aliases():
    config = ClientConfig({'defaultAddHostname': False, 'useOpentsdbAlways': True})
    assert config.default_add_hostname is False
    assert config.use_backend_always is True
    assert ClientConfig(useBackendAlways=True).use_backend_always is True


def test_kwargs_override_options():
    config = ClientConfig({'prefix': 'a', 'tcp': True}, prefix='b')
    assert config.prefix == 'b.'
    assert config.tcp is True


def test_unknown_keys_ignored():
    config = ClientConfig({'debug': True, 'hostname': 'x'})
    assert config.get('debug') is None
    with pytest.raises(AttributeError):
        config.debug


def test_instance_list_becomes_tuple():
    assert ClientConfig(instance=['h', 1]).instance == ('h', 1)


def test_read_only():
    config = ClientConfig()
    with pytest.raises(AttributeError):
        config.prefix = 'x'


def test_settings_get(tmp_path):
    (tmp_path / "settings.json").write_text(json.dumps({"hello": "world", "foo": 1}))
    st = Settings(root_path=str(tmp_path))
    assert st.hello == "world"
    assert st.foo == 1
    assert st.get("missing", 3) == 3
    with pytest.raises(KeyError):
        st['missing']


def test_settings_load_toml(tmp_path):
    (tmp_path / 'settings.toml').write_text('[statsd]\nprefix = "svc"\ntcp = true\n')
    st = Settings(root_path=str(tmp_path))
    assert st.statsd.prefix == 'svc'
    config = ClientConfig.from_settings(st)
    assert config.prefix == 'svc.'
    assert config.tcp is True


def test_settings_local_overrides(tmp_path):
    config_dir = tmp_path / 'config'
    config_dir.mkdir()
    (config_dir / 'settings.toml').write_text('[statsd]\nprefix = "svc"\n')
    (config_dir / 'settings.local.json').write_text(json.dumps({'statsd': {'prefix': 'local'}}))
    (tmp_path / 'settings.toml').write_text('[statsd]\nprefix = "ignored"\n')
    st = Settings(root_path=str(tmp_path))
    assert len(st.config_files) == 2
    assert ClientConfig.from_settings(st).prefix == 'local.'


def test_from_settings_missing_section(tmp_path):
    st = Settings(root_path=str(tmp_path))
    config = ClientConfig.from_settings(st, prefix='fallback')
    assert config.prefix == 'fallback.'


def test_register_loader_validation():
    with pytest.raises(ConfigurationError):
        Settings.register_loader('.ini', 'not callable')
    with pytest.raises(ConfigurationError):
        Settings.register_loader('ini', lambda content: {})
