from souvenir.lazy import KeyedMemoizer, LazyOnce, UnhashableKeyError, lazy, memoized

__version__ = '0.2.0'

__all__ = ['KeyedMemoizer', 'LazyOnce', 'UnhashableKeyError', 'lazy', 'memoized']
