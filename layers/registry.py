# layers/registry.py
from utils.logger import get_logger

logger = get_logger("registry")

_LAYER_CLASSES = {}


def register_layer(cls):
    """
    Class decorator: make a layer type constructible from its type tag.
    The tag is ``cls.class_name`` (defaults to the Python class name).
    """
    tag = cls.__dict__.get("class_name") or cls.__name__
    if tag in _LAYER_CLASSES and _LAYER_CLASSES[tag] is not cls:
        raise ValueError(f"Layer type '{tag}' is already registered to {_LAYER_CLASSES[tag]}")
    cls.class_name = tag
    _LAYER_CLASSES[tag] = cls
    logger.debug("Registered layer type %s", tag)
    return cls


def get_layer_class(class_name):
    try:
        return _LAYER_CLASSES[class_name]
    except KeyError:
        logger.error("Unknown layer type '%s'. Registered: %s", class_name, sorted(_LAYER_CLASSES))
        raise KeyError(f"Unknown layer type: {class_name}") from None


def deserialize(class_name, config):
    """Instantiate a fresh layer of type ``class_name`` from a config map."""
    return get_layer_class(class_name).from_config(config)


def registered_types():
    return sorted(_LAYER_CLASSES)
