"""Docker plugin.

Adds the ``docker`` and ``docker-compose`` contexts, detected from a
``Dockerfile`` or a ``docker-compose.y(a)ml`` file respectively.

See Also:
    :class:`~tbox.plugins.docker.plugin.DockerPlugin`
"""

from tbox.plugins.docker.plugin import DockerPlugin

__all__ = ["DockerPlugin"]
