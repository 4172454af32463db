"""Numeric process exit codes used by the ``netclient`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~netclient.exceptions.NetclientError` subclass.
Shell scripts can inspect the exit code to tell a rejected request from a
failing server without parsing stderr.

Example::

    $ netclient request GET https://api.example.com/missing
    $ echo $?
    4   # EXIT_CLIENT_ERROR -- the server answered with a 4xx status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including :class:`~netclient.exceptions.UnknownError`)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CLIENT_ERROR = 4
"""The remote API rejected the request with an HTTP 4xx status."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx status after all retries."""

EXIT_TIMEOUT = 6
"""The request timed out after all retries."""

EXIT_CANCELLED = 130
"""The request was interrupted (Ctrl-C)."""
