# This file is part of Poreflow.
# Licensed under MIT License.

"""Plugin discovery, loading, and lifecycle management."""

import logging as lg
from importlib.metadata import entry_points

from .abc import Consumer, Segmenter

SEGMENTER_GROUP = 'poreflow.segmenters'
CONSUMER_GROUP = 'poreflow.consumers'


class PluginRegistry:
    """Discovers, configures, and manages segmenters and consumers.

    Plugins are discovered via ``importlib.metadata.entry_points`` using the
    groups ``poreflow.segmenters`` and ``poreflow.consumers``.
    """

    def __init__(self):
        self._consumers: list[Consumer] = []
        self._all_segmenter_eps = {}  # name -> entry_point
        self._all_consumer_eps = {}

    # -- Discovery -----------------------------------------------------------

    def discover(self, active_consumers=None):
        """Load entry points and instantiate the active consumers.

        Args:
            active_consumers: Iterable of consumer names to activate, or
                *None* for all available consumers.
        """
        for ep in entry_points(group=SEGMENTER_GROUP):
            self._all_segmenter_eps[ep.name] = ep
        for ep in entry_points(group=CONSUMER_GROUP):
            self._all_consumer_eps[ep.name] = ep

        if active_consumers is None:
            names_to_load = list(self._all_consumer_eps.keys())
        else:
            names_to_load = list(active_consumers)

        for name in names_to_load:
            if name not in self._all_consumer_eps:
                lg.warning(f"Consumer '{name}' not found, skipping")
                continue
            try:
                instance = self._all_consumer_eps[name].load()()
                if not isinstance(instance, Consumer):
                    lg.warning(f"'{name}' is not a Consumer subclass, skipping")
                    continue
                self._consumers.append(instance)
                lg.info(f'Loaded consumer: {instance.name} v{instance.version}')
            except Exception as exc:
                lg.warning(f"Failed to load consumer '{name}': {exc}", exc_info=True)

    def get_segmenter(self, name):
        """Instantiate the segmenter registered as *name*.

        Raises:
            ValueError: No such segmenter, or it is not a :class:`Segmenter`.
        """
        if name not in self._all_segmenter_eps:
            raise ValueError(
                f"Unknown segmenter '{name}'. Available: {sorted(self._all_segmenter_eps)}"
            )
        instance = self._all_segmenter_eps[name].load()()
        if not isinstance(instance, Segmenter):
            raise ValueError(f"'{name}' is not a Segmenter subclass")
        lg.info(f'Loaded segmenter: {instance.name} v{instance.version}')
        return instance

    # -- Configuration -------------------------------------------------------

    def configure_all(self, opts):
        """Pass CLI options to all loaded consumers."""
        for c in self._consumers:
            try:
                c.configure(opts)
            except Exception as exc:
                lg.warning(f"Consumer '{c.name}' configure failed: {exc}", exc_info=True)

    # -- Hook notification ---------------------------------------------------

    def notify(self, hook_name, snapshot):
        """Fire a hook on all active consumers."""
        for c in self._consumers:
            method = getattr(c, hook_name, None)
            if method is None:
                continue
            try:
                method(snapshot)
            except Exception as exc:
                lg.warning(f"Consumer '{c.name}' {hook_name} failed: {exc}", exc_info=True)

    # -- Commit --------------------------------------------------------------

    def commit_all(self, output_dir, exp_tag, console=None):
        for c in self._consumers:
            try:
                lg.info(f'Committing consumer: {c.name}')
                c.commit(output_dir, exp_tag)
            except Exception as exc:
                lg.warning(f"Consumer '{c.name}' commit failed: {exc}", exc_info=True)
                continue
            if console:
                console.detail(f'* {c.name} v{c.version} -- {c.description}')

    # -- Introspection -------------------------------------------------------

    def list_available(self):
        """Return dicts of all discoverable segmenters and consumers."""
        ret = []
        for eps in (self._all_segmenter_eps, self._all_consumer_eps):
            found = {}
            for name, ep in eps.items():
                try:
                    inst = ep.load()()
                    found[name] = {
                        'version': inst.version,
                        'description': inst.description,
                        'builtin': ep.value.startswith('poreflow.plugins.builtin'),
                    }
                except Exception:
                    found[name] = {'version': '?', 'description': '(load failed)', 'builtin': False}
            ret.append(found)
        return tuple(ret)

    @property
    def consumers(self):
        return list(self._consumers)
