"""Built-in CLI sub-commands for tbox.

Everything that is not one of these names is treated as a context command
and handed to the :class:`~tbox.dispatcher.Dispatcher` by
:mod:`tbox.app`.

* :mod:`~tbox.commands.status` -- show the active context and its commands.
* :mod:`~tbox.commands.help` -- explain what a context command runs.
* :mod:`~tbox.commands.plugin` -- list and inspect the built-in plugins.
* :mod:`~tbox.commands.common` -- session loading and error reporting
  shared by all of the above.
"""
