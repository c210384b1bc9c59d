"""Service layer: the cache manager, the authoring path, and CLI facades.

Services bridge the pure ``domain`` package and the ``infrastructure``
adapters. Facade methods return :class:`~hivemoji.services.result.ServiceResult`.
"""
