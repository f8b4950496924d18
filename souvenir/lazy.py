import copy
import functools
from collections.abc import Hashable
from typing import TypeVar, Generic, Callable, Any

from souvenir.utils.logged import Logged

_T = TypeVar('_T')
_P = TypeVar('_P', bound=Hashable)

_EMPTY = object()


class UnhashableKeyError(TypeError):
    def __init__(self, key: object):
        super().__init__(f'memoization keys must be hashable, got {type(key).__qualname__}')
        self.key = key


def _describe(compute: Callable) -> str:
    return getattr(compute, '__qualname__', None) or type(compute).__qualname__


def _check_callable(compute: object):
    if not callable(compute):
        raise TypeError(f'compute must be callable, got {type(compute).__qualname__}')


class _Copying(Logged):
    def __init__(self, compute: Callable, copy_results: bool, log_tag: str | None):
        _check_callable(compute)
        Logged.__init__(self, log_tag or _describe(compute))
        self._copy_results = copy_results
        self._uncopyable: set[int] = set()

    def _duplicate(self, value):
        if not self._copy_results or id(value) in self._uncopyable:
            return value
        try:
            return copy.deepcopy(value)
        except (TypeError, copy.Error) as e:
            # value is the cached object itself, so its id stays valid
            self._uncopyable.add(id(value))
            self.warning('cannot copy %s (%s), returning the cached object', type(value).__qualname__, e)
            return value


class LazyOnce(_Copying, Generic[_T]):
    """Defers ``compute()`` until the value is first asked for, then keeps the result."""

    def __init__(self, compute: Callable[[], _T], *, copy_results: bool = True, log_tag: str | None = None):
        _Copying.__init__(self, compute, copy_results, log_tag)
        self._compute: Callable[[], _T] = compute
        self._stored: Any = _EMPTY

    @property
    def is_evaluated(self) -> bool:
        return self._stored is not _EMPTY

    def value(self) -> _T:
        if self._stored is _EMPTY:
            self.debug('evaluating')
            try:
                self._stored = self._compute()
            except Exception as e:
                self.debug('evaluation failed with %s, nothing stored', type(e).__qualname__)
                raise
        return self._duplicate(self._stored)

    def __call__(self) -> _T:
        return self.value()

    def __repr__(self):
        state = repr(self._stored) if self.is_evaluated else 'pending'
        return f'{type(self).__name__}({_describe(self._compute)}, {state})'


class KeyedMemoizer(_Copying, Generic[_P, _T]):
    """Caches ``compute(key)`` per distinct key, looked up by equality and hash."""

    def __init__(self, compute: Callable[[_P], _T], *, copy_results: bool = True, log_tag: str | None = None):
        _Copying.__init__(self, compute, copy_results, log_tag)
        self._compute: Callable[[_P], _T] = compute
        self._cache: dict[_P, _T] = {}

    def resolve(self, key: _P) -> _T:
        try:
            cached = self._cache.get(key, _EMPTY)
        except TypeError:
            raise UnhashableKeyError(key) from None

        if cached is not _EMPTY:
            self.debug('hit for %r', key)
            return self._duplicate(cached)

        try:
            result = self._compute(key)
        except Exception as e:
            self.debug('compute failed for %r with %s, nothing stored', key, type(e).__qualname__)
            raise
        # hashable keys keep their hash and equality, so the caller's object is the key
        self._cache[key] = result
        self.debug('miss for %r, %d cached', key, len(self._cache))
        return self._duplicate(result)

    def __call__(self, key: _P) -> _T:
        return self.resolve(key)

    def __contains__(self, key: object) -> bool:
        try:
            return key in self._cache
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._cache)

    def __repr__(self):
        return f'{type(self).__name__}({_describe(self._compute)}, {len(self._cache)} cached)'


def _decorate(cls: type, func: Callable | None, **options):
    def actual_decorator(f: Callable):
        return functools.update_wrapper(cls(f, **options), f, updated=())

    return actual_decorator if func is None else actual_decorator(func)


def memoized(func: Callable[[_P], _T] | None = None, /, **options) -> KeyedMemoizer[_P, _T]:
    """Decorator form of :class:`KeyedMemoizer`, bare or with options."""
    return _decorate(KeyedMemoizer, func, **options)


def lazy(func: Callable[[], _T] | None = None, /, **options) -> LazyOnce[_T]:
    return _decorate(LazyOnce, func, **options)
