"""
Configuration loader with file reading and validation.
"""

from pathlib import Path

from .lexer import LexerError
from .parser import Block, ConfigDocument, ParseError, parse_config, parse_config_file
from .schema import Config


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


class ConfigLoader:
    """
    Loads and validates configuration from files or strings.

    Usage:
        loader = ConfigLoader()
        config = loader.load_file("/etc/systemd-timings/config.conf")
        # or
        config = loader.load_string(config_text)
    """

    # Known directives for each block type
    KNOWN_DIRECTIVES = {
        "timings": {"unit_pattern", "periodic", "interval"},
        "output": {"stdout", "mqtt"},
        "mqtt": {
            "host",
            "port",
            "username",
            "password",
            "client_id",
            "topic_prefix",
            "qos",
            "retain",
            "keepalive",
        },
        "logging": {
            "level",
            "file",
            "file_level",
            "file_max_size",
            "file_keep",
            "colors",
            "format",
        },
    }

    def __init__(self):
        self.last_document: ConfigDocument | None = None

    def load_file(self, path: str | Path) -> Config:
        """
        Load configuration from a file.

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.is_file():
            raise ConfigError(f"Not a file: {path}")

        try:
            document = parse_config_file(path)
        except (LexerError, ParseError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration: {e}") from e

        return self._build(document)

    def load_string(
        self,
        source: str,
        filename: str = "<string>",
        base_path: str | Path | None = None,
    ) -> Config:
        """
        Load configuration from a string.

        Args:
            source: Configuration source text
            filename: Filename for error messages
            base_path: Base path for resolving includes

        Raises:
            ConfigError: If configuration cannot be parsed
        """
        try:
            document = parse_config(source, filename, Path(base_path) if base_path else None)
        except (LexerError, ParseError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read included configuration: {e}") from e

        return self._build(document)

    def _build(self, document: ConfigDocument) -> Config:
        self.last_document = document
        try:
            return Config.from_document(document)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

    def validate(self, config: Config) -> list[str]:
        """
        Validate configuration and return list of warnings.

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []

        if self.last_document:
            warnings.extend(self._check_unknown_directives(self.last_document))

        if not any(config.timings.patterns):
            warnings.append("timings: unit_pattern matches no units")

        if config.timings.interval <= 0:
            warnings.append(f"timings: interval must be positive, got {config.timings.interval}")

        if not (config.output.stdout or config.output.mqtt):
            warnings.append("output: no output enabled, records will be discarded")

        if config.output.mqtt and not config.mqtt.host:
            warnings.append("mqtt: output enabled but host is not configured")

        return warnings

    def _check_unknown_directives(self, document: ConfigDocument) -> list[str]:
        """Check for unknown blocks and directives in parsed document."""
        warnings = []

        for directive in document.directives:
            warnings.append(
                f"Unknown top-level directive '{directive.name}' (line {directive.line})"
            )

        for block in document.blocks:
            known = self.KNOWN_DIRECTIVES.get(block.type)
            if known is None:
                warnings.append(f"Unknown block '{block.type}' (line {block.line})")
                continue
            warnings.extend(self._check_block(block, known))

        return warnings

    @staticmethod
    def _check_block(block: Block, known: set[str]) -> list[str]:
        warnings = [
            f"Unknown directive '{d.name}' in {block.type} block (line {d.line})"
            for d in block.directives
            if d.name not in known
        ]
        warnings.extend(
            f"Unexpected block '{nested.type}' in {block.type} block (line {nested.line})"
            for nested in block.blocks
        )
        return warnings


def load_config(path: str | Path) -> Config:
    """Convenience function to load configuration from a file."""
    return ConfigLoader().load_file(path)
