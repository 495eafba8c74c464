from .object_store import ObjectStore, LocalObjectStore, get_object_store
