class StoreError(RuntimeError):
    """Внешнее хранилище (профиль или журнал сессий) не приняло запись."""
