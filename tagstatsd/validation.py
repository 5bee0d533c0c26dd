from tagstatsd.exceptions import InvalidNameError, NameTooLongError

INVALID_CHARACTERS = (':', '\0', '/', '\\')

# characters that would break the line itself once tags are folded in
WIRE_DELIMITERS = (':', '\0')

MAX_STAT_LENGTH = 251


def _check_characters(stat, characters):
    for char in characters:
        if char in stat:
            raise InvalidNameError(stat, char)


def validate_name(stat):
    """Raise if the metric name, before tag encoding, has a forbidden character."""
    _check_characters(stat, INVALID_CHARACTERS)
    return stat


def validate_encoded(stat, max_length=MAX_STAT_LENGTH):
    """Raise if the fully encoded name can not be written on the wire.

    Tag values may carry ``/`` or ``\\`` but never the ``:`` separator or NUL.
    """
    _check_characters(stat, WIRE_DELIMITERS)
    if len(stat) > max_length:
        raise NameTooLongError(stat, max_length)
    return stat
