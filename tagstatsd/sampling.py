import random

from tagstatsd.deploy import DeployType

CANARY_SAMPLE_RATE = 0.1


class SamplingPolicy(object):
    """Decides whether a batch of observations is sent and at which rate.

    Canary and control hosts are few, so their sample rate never drops below
    ``canary_sample_rate``. A kept batch is annotated with ``|@<rate>`` so the
    daemon can scale the counts back up; a dropped batch is not sent at all.
    """

    def __init__(self, deploy_type=DeployType.NONE, canary_sample_rate=CANARY_SAMPLE_RATE,
                 random_func=None):
        self.deploy_type = deploy_type
        self.canary_sample_rate = canary_sample_rate
        self.random_func = random_func or random.random

    def effective_rate(self, sample_rate=None):
        rate = sample_rate or 1.0
        if self.deploy_type and self.canary_sample_rate > rate:
            rate = self.canary_sample_rate
        return rate

    def apply(self, observations, sample_rate=None):
        """Return the observations to send, or None when the draw drops them.

        One draw covers the whole batch.
        """
        rate = self.effective_rate(sample_rate)
        if rate >= 1:
            return dict(observations)
        if self.random_func() >= rate:
            return None
        return dict((stat, '%s|@%s' % (value, rate)) for stat, value in observations.items())
