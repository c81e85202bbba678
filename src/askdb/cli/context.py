"""CLI context management for settings, executors and shared state."""

from dataclasses import dataclass, field

from askdb.config import AskDBSettings
from askdb.execution import SQLAlchemyExecutor
from askdb.exceptions import ConfigurationError
from askdb.llm import LanguageModel, get_model


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Manages the executor lifecycle and output preferences.
    """

    settings: AskDBSettings
    json_output: bool
    _executor: SQLAlchemyExecutor | None = field(default=None, init=False, repr=False)

    def get_executor(self, statement_timeout_ms: int | None = None) -> SQLAlchemyExecutor:
        """Get or create the database executor (lazy initialization).

        Args:
            statement_timeout_ms: Server-side statement timeout (PostgreSQL only)

        Raises:
            ConfigurationError: If no database URL is configured
        """
        if self._executor is None:
            if not self.settings.database_url:
                raise ConfigurationError(
                    "Database URL is required. Use --database or set ASKDB_DATABASE_URL."
                )
            self._executor = SQLAlchemyExecutor(
                self.settings.database_url, statement_timeout_ms=statement_timeout_ms
            )
        return self._executor

    def get_model(self) -> LanguageModel:
        """Build the configured language model."""
        return get_model(
            self.settings.provider,
            api_key=self.settings.api_key,
            model=self.settings.model,
        )

    def close(self) -> None:
        """Dispose of the executor if open."""
        if self._executor is not None:
            self._executor.close()
            self._executor = None
