from typing import TypeVar

T = TypeVar("T", bound=object)


def get_all_subclasses(cls: type[T]) -> list[type[T]]:
    """
    Retrieves all subclasses of a given class, at any depth.

    :param type[T] cls: The class to retrieve subclasses for.
    :return: A list of all subclasses.
    """
    found: dict[str, type[T]] = {}
    pending = list(cls.__subclasses__())
    while pending:
        subclass = pending.pop()
        qualified = f"{subclass.__module__}.{subclass.__qualname__}"
        if qualified not in found:
            found[qualified] = subclass
            pending.extend(subclass.__subclasses__())
    return list(found.values())


def get_subclass(root_class: type[T], child_class_name: str) -> type[T]:
    """
    Retrieves a concrete implementation by its class name.

    Used to resolve configuration values such as ``event_store_cls``.

    :param type[T] root_class: The root class.
    :param str child_class_name: The name of the subclass to retrieve.
    :return: the subclass with the given name (any level deep)
    :raises ValueError: If no subclass has that name.
    """
    for subclass in get_all_subclasses(root_class):
        if subclass.__name__ == child_class_name:
            return subclass
    available = sorted(s.__name__ for s in get_all_subclasses(root_class))
    raise ValueError(
        f"Unknown subclass: {child_class_name} of {root_class.__name__}, "
        f"available: {', '.join(available) or 'none'}"
    )
