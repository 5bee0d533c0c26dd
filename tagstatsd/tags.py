from tagstatsd.deploy import DeployType

TAG_MARKER = '._t_'


class TagEncoder(object):
    """Folds dimensional tags into a dotted stat name.

    ``encode('x', {'region': 'us'})`` on host ``web1`` gives
    ``x._t_host.web1._t_region.us``. The tag-aware local daemon splits the
    name back into a metric and its tags.
    """

    def __init__(self, hostname, deploy_type=DeployType.NONE, default_add_hostname=True):
        self.hostname = hostname
        self.deploy_type = deploy_type
        self.default_add_hostname = default_add_hostname

    def should_encode(self, tags, use_backend_always=False):
        return bool(tags) or bool(self.deploy_type) or bool(use_backend_always)

    def build_tags(self, tags=None, add_hostname=False):
        final = {}
        if add_hostname or self.default_add_hostname:
            final['host'] = self.hostname
        if self.deploy_type:
            final['deployType'] = self.deploy_type.value
        for key, value in (tags or {}).items():
            # injected host/deployType values win over caller tags of the same name
            final.setdefault(key, value)
        return final

    def encode(self, stat, tags=None, add_hostname=False):
        parts = [stat]
        for key, value in self.build_tags(tags, add_hostname).items():
            parts.append('{}{}.{}'.format(TAG_MARKER, key, value))
        return ''.join(parts)
