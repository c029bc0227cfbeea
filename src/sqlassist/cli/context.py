"""CLI context management for database targets and shared state."""

from dataclasses import dataclass, field

from sqlassist.assistant import SQLAssistant
from sqlassist.core.connection import ConnectionDescriptor, DatabaseType
from sqlassist.exceptions import ConfigurationError


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Holds the target database options and output preferences. The target is
    resolved only by commands that need a database.
    """

    json_output: bool
    verbose: bool = False
    database_url: str | None = None
    db_type: str | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    _assistant: SQLAssistant | None = field(default=None, init=False, repr=False)

    def get_target(self) -> ConnectionDescriptor:
        """Build the connection descriptor from the global options.

        Priority:
        1. --url (or SQLASSIST_DATABASE_URL)
        2. --type with --host/--port/--database/--user/--password

        Raises:
            ConfigurationError: If no database was specified
        """
        if self.database_url:
            return ConnectionDescriptor.from_url(self.database_url)

        if not self.db_type or not self.database:
            raise ConfigurationError(
                "No database specified. Use --url, or --type with --database."
            )
        try:
            db_type = DatabaseType(self.db_type.lower())
        except ValueError as e:
            supported = ", ".join(t.value for t in DatabaseType)
            raise ConfigurationError(
                f"Unsupported database type: {self.db_type}. Supported: {supported}"
            ) from e

        return ConnectionDescriptor(
            type=db_type,
            host=self.host,
            port=self.port,
            database=self.database,
            username=self.user,
            password=self.password,
        )

    def get_assistant(self) -> SQLAssistant:
        """Get or create the assistant (lazy initialization)."""
        if self._assistant is None:
            self._assistant = SQLAssistant()
        return self._assistant
