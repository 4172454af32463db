"""Built-in CLI sub-commands for netclient.

* :mod:`~netclient.commands.request` -- send one request and print the response.
* :mod:`~netclient.commands.config` -- view and modify settings.
"""
