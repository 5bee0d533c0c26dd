__version__ = '0.3.0'

from tagstatsd.client import StatsClient
from tagstatsd.config import ClientConfig
from tagstatsd.deploy import DeployType
from tagstatsd.routing import Destination

__all__ = ['StatsClient', 'ClientConfig', 'DeployType', 'Destination']
