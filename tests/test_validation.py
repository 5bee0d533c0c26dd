import pytest

from tagstatsd.exceptions import InvalidMetricError, InvalidNameError, NameTooLongError
from tagstatsd.validation import MAX_STAT_LENGTH, validate_encoded, validate_name


@pytest.mark.parametrize('char', [':', '\0', '/', '\\'])
def test_invalid_characters(char):
    with pytest.raises(InvalidNameError) as excinfo:
        validate_name('foo%sbar' % char)
    assert excinfo.value.char == char
    assert excinfo.value.stat == 'foo%sbar' % char


def test_encoded_name_allows_slashes_in_tags():
    assert validate_encoded('http.requests._t_route./home') == 'http.requests._t_route./home'
    assert validate_encoded('disk._t_path.C\\') == 'disk._t_path.C\\'


@pytest.mark.parametrize('char', [':', '\0'])
def test_encoded_name_rejects_wire_delimiters(char):
    with pytest.raises(InvalidNameError):
        validate_encoded('x._t_url.a%sb' % char)


def test_length_limit():
    assert validate_encoded('a' * MAX_STAT_LENGTH) == 'a' * MAX_STAT_LENGTH
    with pytest.raises(NameTooLongError) as excinfo:
        validate_encoded('a' * (MAX_STAT_LENGTH + 1))
    assert isinstance(excinfo.value, InvalidMetricError)
    assert excinfo.value.limit == 251


def test_name_check_ignores_length():
    assert validate_name('a' * 300) == 'a' * 300


def test_dotted_names_are_valid():
    assert validate_name('app.requests') == 'app.requests'
