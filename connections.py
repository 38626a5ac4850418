"""
Connection store for slackecho
Maps a connection name to a bot token and recipient, persisted as JSON
"""
import json
import os
from dataclasses import dataclass, asdict
from typing import List, Optional, Tuple

from logger import LoggerMixin


class ConnectionStoreError(Exception):
    """The connection store could not be read or changed"""


class ConnectionExistsError(ConnectionStoreError):
    """A connection with that name is already stored"""


class ConnectionNotFoundError(ConnectionStoreError):
    """No connection with that name is stored"""


class AmbiguousConnectionError(ConnectionStoreError):
    """No name was given and there is not exactly one connection to default to"""


@dataclass
class Connection:
    """One stored bot-to-recipient pairing"""
    name: str
    token: str
    recipient_id: str


def normalize_name(name: str) -> str:
    """Connection names never contain whitespace"""
    return "-".join(name.split())


class ConnectionStore(LoggerMixin):
    """Named connections backed by a JSON file"""

    def __init__(self, path: str, connections: Optional[List[Connection]] = None):
        self.path = path
        self._connections: List[Connection] = list(connections or [])

    @classmethod
    def load(cls, path: str) -> "ConnectionStore":
        """
        Read the store from path

        A missing or empty file is an empty store.

        Raises:
            ConnectionStoreError: The file is not a valid connection list
        """
        if not os.path.exists(path):
            return cls(path)

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise ConnectionStoreError(f"could not read {path}: {e}") from e

        if not content.strip():
            return cls(path)

        try:
            entries = json.loads(content)
            connections = [
                Connection(name=entry["name"], token=entry["token"], recipient_id=str(entry["recipient_id"]))
                for entry in entries
            ]
        except (ValueError, TypeError, KeyError) as e:
            raise ConnectionStoreError(f"could not parse {path}: {e}") from e

        return cls(path, connections)

    def save(self) -> None:
        """Rewrite the whole file with the current connections"""
        directory = os.path.dirname(self.path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)

            # The file holds bot tokens, it is never readable by others
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            try:
                # An existing file keeps its old mode on open
                os.fchmod(fd, 0o600)
            except OSError:
                os.close(fd)
                raise
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump([asdict(connection) for connection in self._connections], f, indent=2)
        except OSError as e:
            raise ConnectionStoreError(f"could not write {self.path}: {e}") from e

        self.log_debug(f"Saved {len(self._connections)} connections to {self.path}")

    def names(self) -> List[str]:
        return [connection.name for connection in self._connections]

    def connections(self) -> List[Connection]:
        return list(self._connections)

    def add(self, name: str, token: str, recipient_id: str) -> Connection:
        """
        Store a new connection

        Raises:
            ConnectionExistsError: The (normalized) name is taken
        """
        name = normalize_name(name)
        if name in self.names():
            raise ConnectionExistsError(f"connection '{name}' already exists")

        connection = Connection(name=name, token=token, recipient_id=recipient_id)
        self._connections.append(connection)
        return connection

    def get(self, name: Optional[str] = None) -> Tuple[str, str]:
        """
        Look up the token and recipient of a connection

        Without a name the only stored connection is used.

        Raises:
            ConnectionNotFoundError: No connection has that name
            AmbiguousConnectionError: No name given and not exactly one connection stored
        """
        if name is None:
            if len(self._connections) == 1:
                connection = self._connections[0]
                return connection.token, connection.recipient_id
            raise AmbiguousConnectionError(
                f"no connection was given and there are {len(self._connections)} "
                f"connections to choose from"
            )

        for connection in self._connections:
            if connection.name == name:
                return connection.token, connection.recipient_id
        raise ConnectionNotFoundError(f"connection '{name}' does not exist")

    def remove(self, name: str) -> None:
        """
        Delete a connection

        Raises:
            ConnectionNotFoundError: No connection has that name
        """
        for index, connection in enumerate(self._connections):
            if connection.name == name:
                del self._connections[index]
                return
        raise ConnectionNotFoundError(f"connection '{name}' does not exist")
