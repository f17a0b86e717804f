"""Entrypoints referenced by the function deployment configuration.

Importing this module is the cold start: configuration is validated and the
storage handle is created here, so a misconfigured function fails to
initialize instead of failing each request.
"""

from filerelay.functions.runtime import FunctionRuntime

runtime = FunctionRuntime.from_settings()

file_saver_handler = runtime.file_saver
file_downloader_handler = runtime.file_downloader
gateway_handler = runtime.gateway
