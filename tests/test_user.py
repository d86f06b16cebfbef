from relaychat.connection import Connection
from relaychat.user import User


def test_user_identity(make_socket):
    conn = Connection(make_socket())
    ada = User(conn, 'ada')
    bob = User(conn, 'bob')

    assert str(ada) == 'ada'
    assert ada.connection is conn
    assert ada.id != bob.id
    assert ada.channel is None


def test_set_connection_transfers_without_closing_old(make_socket):
    old = Connection(make_socket('old'))
    new = Connection(make_socket('new'))
    user = User(old, 'ada')

    assert user.set_connection(new) is user
    assert user.connection is new
    assert old.active
