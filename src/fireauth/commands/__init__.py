"""Built-in CLI sub-commands for fireauth.

* :mod:`~fireauth.commands.session` -- commands that start a session
  (sign-up, sign-in, anonymous) and the unauthenticated helpers
  (password reset, provider lookup).
* :mod:`~fireauth.commands.account` -- commands that act on a signed-in
  account, bootstrapped from a refresh token.
* :mod:`~fireauth.commands.config` -- view and modify global settings.

Single commands are plain callbacks registered directly on the root app;
multi-command groups (``config``) export a :class:`typer.Typer`.
"""
