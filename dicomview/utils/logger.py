import logging
import inspect
from pathlib import Path


class ViewerLogger:
    """
    Console and file logger for the viewer pipeline.

    Messages are prefixed with the name of the calling class so the log reads
    as a trace of which component made which decision. ``trace`` records the
    pipeline's decision points (range computed, window source chosen,
    inversion applied) as ``event key=value`` lines.
    """

    def __init__(
        self,
        log_dir: str | Path | None = None,
        name: str = "DICOMVIEW",
        level: int | str = logging.INFO,
    ) -> None:
        """Initializes the logger.

        Args:
            log_dir (str | Path | None, optional): Directory for 'session.log'.
                If None, only the console handler is installed. Defaults to None.
            name (str, optional): Name for the logger instance. Defaults to "DICOMVIEW".
            level (int | str, optional): Logging level. Defaults to logging.INFO.
        """
        self.log_dir = Path(log_dir) if log_dir is not None else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.name = name
        self.level = logging.getLevelName(level.upper()) if isinstance(level, str) else level

        self._setup_standard_logging()

    def _setup_standard_logging(self) -> None:
        """Configures the standard Python logging module to write to file and console.

        Sets up a file handler for 'session.log' inside the log directory (when
        one is given) and a stream handler for console output.
        """
        fmt = "%(asctime)s [%(levelname)s] %(message)s"
        logging.basicConfig(
            level=self.level,
            format=fmt,
            encoding="utf-8",
            handlers=[logging.StreamHandler()],
        )
        self.console = logging.getLogger(self.name)
        self.console.setLevel(self.level)

        # basicConfig is a no-op once the root logger has handlers.
        self.log_file = None
        if self.log_dir is not None:
            self.log_file = self.log_dir / "session.log"
            already_attached = any(
                isinstance(h, logging.FileHandler) and Path(h.baseFilename) == self.log_file.absolute()
                for h in self.console.handlers
            )
            if not already_attached:
                file_handler = logging.FileHandler(self.log_file, encoding="utf-8")
                file_handler.setFormatter(logging.Formatter(fmt))
                self.console.addHandler(file_handler)

    def _get_caller_name(self) -> str:
        """
        Internal helper to find the name of the class or function calling the logger.
        Frame 0: _get_caller_name (this function)
        Frame 1: info/debug/trace (the wrapper function)
        Frame 2: The actual caller (e.g. PixelNormalizer.normalize)
        """
        frame = inspect.currentframe()
        try:
            caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
            if caller is None:
                return self.name
            caller_self = caller.f_locals.get("self", None)
            if caller_self is not None:
                return caller_self.__class__.__name__
            return "Global"
        finally:
            del frame

    def debug(self, msg: str) -> None:
        """Logs a debug message to the console and log file."""
        caller = self._get_caller_name()
        self.console.debug(f"[{caller}] {msg}")

    def info(self, msg: str) -> None:
        """Logs an informational message to the console and log file."""
        caller = self._get_caller_name()
        self.console.info(f"[{caller}] {msg}")

    def warning(self, msg: str) -> None:
        """Logs a warning message to the console and log file."""
        caller = self._get_caller_name()
        self.console.warning(f"[{caller}] {msg}")

    def error(self, msg: str) -> None:
        """Logs an error message to the console and log file."""
        caller = self._get_caller_name()
        self.console.error(f"[{caller}] {msg}")

    def critical(self, msg: str) -> None:
        """Logs a critical error message to the console and log file."""
        caller = self._get_caller_name()
        self.console.critical(f"[{caller}] {msg}")

    def trace(self, event: str, **fields) -> None:
        """Records a pipeline decision point at debug level.

        Args:
            event (str): Short event name (e.g. 'range_computed').
            **fields: Values describing the decision, logged as key=value pairs.
        """
        caller = self._get_caller_name()
        details = " ".join(f"{k}={v}" for k, v in fields.items())
        self.console.debug(f"[{caller}] {event} {details}".rstrip())

    def close(self) -> None:
        """Closes the session log file, if one was opened."""
        self.info("📝 Logger session closed.")
        for handler in list(self.console.handlers):
            if isinstance(handler, logging.FileHandler):
                handler.close()
                self.console.removeHandler(handler)


class FallbackLogger:
    """A quiet logger used when no ViewerLogger is provided.

    Routes everything through a module-level ``logging`` logger without
    touching handler configuration.
    """

    def __init__(self, name: str = "dicomview"):
        self.console = logging.getLogger(name)

    def debug(self, msg: str): self.console.debug(msg)
    def info(self, msg: str): self.console.info(msg)
    def warning(self, msg: str): self.console.warning(msg)
    def error(self, msg: str): self.console.error(msg)
    def critical(self, msg: str): self.console.critical(msg)

    def trace(self, event: str, **fields):
        details = " ".join(f"{k}={v}" for k, v in fields.items())
        self.console.debug(f"{event} {details}".rstrip())

    def close(self): pass
