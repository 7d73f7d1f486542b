from .filesystem_diagnostic_sink import FileSystemDiagnosticSink

__all__ = ["FileSystemDiagnosticSink"]
