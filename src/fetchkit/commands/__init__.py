"""Built-in CLI sub-commands for fetchkit.

* :mod:`~fetchkit.commands.http` -- ``request``, ``graphql`` and
  ``download``, registered directly on the root app.
* :mod:`~fetchkit.commands.cache` -- the ``cache`` group.
* :mod:`~fetchkit.commands.config` -- the ``config`` group.
"""
