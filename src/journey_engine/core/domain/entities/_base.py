from dataclasses import asdict, fields, is_dataclass
from enum import Enum
from typing import Any, TypeVar

T = TypeVar("T")

class EntityMixin:
    @classmethod
    def from_dict(cls: type[T], data: dict[str, Any]) -> T:
        """
        Cria uma instância da entidade a partir de um dict (chaves extras são ignoradas).
        """
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})

    def to_dict(self) -> dict[str, Any]:
        """
        Converte a entidade em dict; enums viram seus valores.
        """
        return {
            k: (v.value if isinstance(v, Enum) else v)
            for k, v in asdict(self).items()
        }

    @classmethod
    def from_model(cls: type[T], model: Any, **overrides: Any) -> T:
        """
        Cria uma entidade a partir de um modelo Django.
        Campos ausentes no model precisam vir em `overrides`.
        """
        if not is_dataclass(cls):
            raise TypeError(f"{cls.__name__} deve ser um dataclass")
        data: dict[str, Any] = {}
        for f in fields(cls):
            if f.name in overrides:
                data[f.name] = overrides[f.name]
            elif hasattr(model, f.name):
                data[f.name] = getattr(model, f.name)
        return cls(**data)
