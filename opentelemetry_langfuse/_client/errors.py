"""Errors raised while configuring Langfuse exporters and tracers.

Every error is raised synchronously while an exporter, processor or tracer is
being built. Failures during the actual export are handled by the wrapped
OpenTelemetry exporter and batch processor.
"""


class LangfuseOtelError(Exception):
    """Base class for all errors raised by this package."""


class MissingEnvironmentVariableError(LangfuseOtelError):
    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Missing environment variable: {variable}")


class MissingConfigurationError(LangfuseOtelError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing configuration: {field}")


class ExporterBuildError(LangfuseOtelError):
    """The OTLP span exporter could not be constructed."""

    def __init__(self, message: str):
        super().__init__(f"OTLP exporter error: {message}")


class ExporterError(LangfuseOtelError):
    """A span export or flush did not succeed."""

    def __init__(self, message: str):
        super().__init__(f"Exporter error: {message}")


class InvalidConfigurationError(LangfuseOtelError):
    def __init__(self, variable: str, value: str):
        self.variable = variable
        self.value = value
        super().__init__(f"Invalid configuration: {variable}={value!r}")
