"""The daemon's mutable context and the reconciliation of on-disk records.

``State`` bundles the config, the cache, the store they come from and the
random source used for selection. Only the scheduler (or a one-shot command)
owns a ``State``; nothing else mutates it.

Reloading compares a fingerprint of each freshly read record against the
fingerprint recorded at the previous load. An unchanged record is skipped so
that in-memory changes (for example a ``Select`` from the control channel)
are not clobbered by a disk read that carries nothing new.
"""

from __future__ import annotations

import logging
import random

from wallpaper.models import CACHE_VERSION, Cache, Config
from wallpaper.store import Store

logger = logging.getLogger(__name__)


class State:
    def __init__(
        self,
        store: Store,
        config: Config | None = None,
        cache: Cache | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.config = config if config is not None else Config()
        self.cache = cache if cache is not None else Cache()
        self.rng = rng if rng is not None else random.Random()
        self.last_loaded_config = self.config.fingerprint()
        self.last_loaded_cache = self.cache.fingerprint()

    @classmethod
    def load(cls, store: Store | None = None, rng: random.Random | None = None) -> State:
        state = cls(store if store is not None else Store(), rng=rng)
        state.reload()
        return state

    def reload(self, force: bool = False) -> None:
        if force:
            logger.debug("force reload")
        cache = self.store.load_cache(self.cache)
        config = self.store.load_config(self.config)
        self.reconcile(cache, config, force=force)

    def reconcile(
        self,
        cache: Cache | None,
        config: Config | None,
        force: bool = False,
    ) -> None:
        # The cache is merged under the monitor filter of the config that was
        # active before this reload.
        if cache is not None:
            self._merge_cache(cache, force)
        if config is not None:
            self._replace_config(config, force)

    def save(self) -> None:
        self.store.save_cache(self.cache)

    def _merge_cache(self, cache: Cache, force: bool) -> None:
        fingerprint = cache.fingerprint()
        if not force and fingerprint == self.last_loaded_cache:
            logger.debug("not reloading cache as it stayed the same")
            return
        logger.debug("reloading cache for real")
        self.last_loaded_cache = fingerprint

        if cache.version != CACHE_VERSION:
            logger.error(
                "read cache with incompatible version. Expected version %s but got %s",
                CACHE_VERSION,
                cache.version,
            )
            return

        monitors = self.config.monitors
        for monitor, image in cache.last_images.items():
            if monitors.includes(monitor):
                self.cache.last_images[monitor] = image
        for monitor, transition in cache.last_transitions.items():
            if monitors.includes(monitor):
                self.cache.last_transitions[monitor] = transition
        self.cache.last_update = cache.last_update

    def _replace_config(self, config: Config, force: bool) -> None:
        fingerprint = config.fingerprint()
        if not force and fingerprint == self.last_loaded_config:
            logger.debug("not reloading config as it stayed the same")
            return
        logger.debug("reloading config for real")
        self.last_loaded_config = fingerprint
        self.config = config
