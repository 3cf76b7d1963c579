# This file is part of Poreflow.
# Licensed under MIT License.

"""CLI subcommand for plugin listing."""


def list_plugins(args):
    """List all installed segmenters and consumers."""
    from ..plugins.registry import PluginRegistry

    registry = PluginRegistry()
    registry.discover()
    segmenters, consumers = registry.list_available()

    for title, found in (('Segmenters', segmenters), ('Consumers', consumers)):
        print(f'{title}:')
        if not found:
            print('  (none)')
        for name, info in sorted(found.items()):
            tag = ' (built-in)' if info.get('builtin') else ''
            desc = info.get('description', '')
            ver = info.get('version', '?')
            print(f'  {name:20s} v{ver:<10s} {desc}{tag}')
        print()
