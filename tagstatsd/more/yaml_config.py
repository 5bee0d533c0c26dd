import yaml

from tagstatsd.config import Settings


def load_yaml(content_str):
    return yaml.safe_load(content_str)


def load():
    Settings.register_loader('.yaml', load_yaml)
    Settings.register_loader('.yml', load_yaml)
