"""PayGuard: data lifecycle compliance engine for payroll data stores."""

__version__ = "0.1.0"
