import pytest

from conftest import SocketRecorder
from tagstatsd.config import ClientConfig
from tagstatsd.deploy import DeployType
from tagstatsd.exceptions import ConfigurationError
from tagstatsd.routing import Destination, SocketRouter
from tagstatsd.transport import parse_instance


def make_router(deploy_type=DeployType.NONE, **options):
    recorder = SocketRecorder()
    return SocketRouter(ClientConfig(options), deploy_type, recorder), recorder


def test_local_sockets_always_built():
    router, recorder = make_router()
    assert [(s.host, s.port) for s in recorder.sockets] == [('127.0.0.1', 18127), ('127.0.0.1', 18125)]
    assert Destination.INSTANCE not in router.sockets


def test_plain_stats_go_to_carbon():
    router, _ = make_router()
    assert router.select({}) is Destination.LOCAL_CARBON
    assert router.select(None) is Destination.LOCAL_CARBON


def test_tagged_stats_go_to_opentsdb():
    router, recorder = make_router()
    assert router.select({'a': 'b'}) is Destination.LOCAL_OPENTSDB
    assert router.get_socket({'a': 'b'}) is recorder.opentsdb


@pytest.mark.parametrize('deploy_type', [DeployType.CANARY, DeployType.CONTROL])
def test_deploy_type_goes_to_opentsdb(deploy_type):
    router, _ = make_router(deploy_type)
    assert router.select({}) is Destination.LOCAL_OPENTSDB


def test_use_backend_always():
    router, _ = make_router(useBackendAlways=True)
    assert router.select({}) is Destination.LOCAL_OPENTSDB


def test_instance_wins():
    router, recorder = make_router(DeployType.CANARY, instance=['10.0.0.1', 9125])
    assert router.select({}) is Destination.INSTANCE
    assert router.select({'a': 'b'}) is Destination.INSTANCE
    assert (recorder.sockets[0].host, recorder.sockets[0].port) == ('10.0.0.1', 9125)


def test_transport_options_passed_to_factory():
    _, recorder = make_router(tcp=True, tcp_timeout=5)
    assert recorder.carbon.kwargs['tcp'] is True
    assert recorder.carbon.kwargs['tcp_timeout'] == 5


def test_close_closes_sockets_once():
    router, recorder = make_router(instance='collector:8125')
    router.close()
    assert all(s.closed for s in recorder.sockets)
    recorder.sockets[0].closed = False
    router.close()
    assert not recorder.sockets[0].closed


def test_invalid_instance_fails_construction():
    with pytest.raises(ConfigurationError):
        make_router(instance='collector:notaport')


@pytest.mark.parametrize('instance,expected', [
    ('10.0.0.1:8125', ('10.0.0.1', 8125)),
    ('collector', ('collector', 18125)),
    ('collector:', ('collector', 18125)),
    (('collector', 9000), ('collector', 9000)),
    (['collector', '9000'], ('collector', 9000)),
    (['collector'], ('collector', 18125)),
    (('collector', None), ('collector', 18125)),
    ('http://stats.example.com', ('http://stats.example.com', 80)),
    ('https://stats.example.com', ('https://stats.example.com', 443)),
    ('http://stats.example.com:8080', ('http://stats.example.com', 8080)),
    ('HTTPS://stats.example.com:8443/', ('HTTPS://stats.example.com', 8443)),
])
def test_parse_instance(instance, expected):
    assert parse_instance(instance) == expected


@pytest.mark.parametrize('instance', [':8125', 'host:0', 'host:70000', (), ('',), 42, ''])
def test_parse_instance_errors(instance):
    with pytest.raises(ConfigurationError):
        parse_instance(instance)
