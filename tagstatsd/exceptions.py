class StatsError(Exception):
    """Base class for every error raised inside tagstatsd."""


class ConfigurationError(StatsError):
    pass


class InvalidMetricError(StatsError):
    def __init__(self, stat, message):
        super(InvalidMetricError, self).__init__(message)
        self.stat = stat


class InvalidNameError(InvalidMetricError):
    def __init__(self, stat, char):
        super(InvalidNameError, self).__init__(
            stat, 'stat name {!r} contains invalid character {!r}'.format(stat, char))
        self.char = char


class NameTooLongError(InvalidMetricError):
    def __init__(self, stat, limit):
        super(NameTooLongError, self).__init__(
            stat, 'stat name is {} characters long, limit is {}'.format(len(stat), limit))
        self.limit = limit


class TransportError(StatsError):
    pass


class ConnectionError(TransportError):
    pass
