import uuid


class User:
    """A chat participant: a display name bound to one connection at a time."""

    def __init__(self, connection, name, channel=None):
        self._connection = connection
        self.id = uuid.uuid4()
        self.name = name
        self.channel = channel

    def __str__(self):
        return self.name

    def __repr__(self):
        return f'<User {self.name!r} {self.id}>'

    @property
    def connection(self):
        return self._connection

    @connection.setter
    def connection(self, connection):
        # the previous connection is left as is; closing it is the caller's call
        self._connection = connection

    def set_connection(self, connection):
        self.connection = connection
        return self
