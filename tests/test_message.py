import pytest

from relaychat.errors import DecodeError
from relaychat.message import Control, decode


def test_decode_single_message():
    [msg] = decode('{"content": {"text": "hello"}}')

    assert msg.content.text == 'hello'
    assert msg.create.username == ''
    assert msg.error.error == ''
    assert msg.user is None


def test_decode_back_to_back_values():
    frame = '{"content": {"text": "a"}}{"create": {"username": "ada"}}\n  {"content": {"text": "b"}, "error": {"error": "oops"}}'

    msgs = list(decode(frame))

    assert [m.content.text for m in msgs] == ['a', '', 'b']
    assert msgs[1].create.username == 'ada'
    assert msgs[2].error.error == 'oops'


@pytest.mark.parametrize('frame', ['', '   \n\t', b''])
def test_decode_empty_frame_yields_nothing(frame):
    assert list(decode(frame)) == []


def test_decode_bytes_and_attaches_user():
    sender = object()

    [msg] = decode('{"content": {"text": "café"}}'.encode(), user=sender)

    assert msg.content.text == 'café'
    assert msg.user is sender


def test_decode_null_facets_are_empty():
    [msg] = decode('{"content": null, "create": {"username": null}}')

    assert msg == Control()


def test_decode_error_after_valid_values():
    gen = decode('{"content": {"text": "ok"}} {"content": ')

    assert next(gen).content.text == 'ok'
    with pytest.raises(DecodeError) as exc_info:
        next(gen)
    assert exc_info.value.pos is not None


@pytest.mark.parametrize('frame', [
    'not json',
    '[1, 2]',
    '"text"',
    '{"content": "hi"}',
    '{"content": {"text": 5}}',
    b'\xff',
])
def test_decode_rejects_malformed(frame):
    with pytest.raises(DecodeError):
        list(decode(frame))


def test_decode_error_is_a_value_error():
    with pytest.raises(ValueError):
        list(decode('{'))


def test_dump_matches_wire_shape_without_sender():
    [msg] = decode('{"content": {"text": "hi"}}', user=object())

    assert msg.model_dump() == {
        'content': {'text': 'hi'},
        'create': {'username': ''},
        'error': {'error': ''},
    }


def test_decode_ignores_unknown_fields():
    [msg] = decode('{"content": {"text": "hi", "color": "red"}, "typing": true}')

    assert msg.content.text == 'hi'


def test_decode_error_names_the_bad_field():
    with pytest.raises(DecodeError) as exc_info:
        list(decode('{"create": {"username": ["ada"]}}'))

    assert 'create.username' in str(exc_info.value)
    assert exc_info.value.pos == 0
