"""
Conventions de nommage des schémas exposés par l'API

Le front-end échange en camelCase ; les modèles restent en snake_case.
Les deux formes sont acceptées en entrée.
"""
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, AliasChoices, AliasGenerator, ConfigDict
from pydantic.alias_generators import to_camel


def _camel_ou_snake(champ: str) -> AliasChoices:
    return AliasChoices(to_camel(champ), champ)


def en_utc(valeur: datetime) -> datetime:
    """Une date sans fuseau ("2024-12-15T10:00:00") est lue comme UTC"""
    if valeur.tzinfo is None:
        return valeur.replace(tzinfo=timezone.utc)
    return valeur.astimezone(timezone.utc)


# Date reçue de l'API, toujours rendue en UTC avec fuseau
DateUTC = Annotated[datetime, AfterValidator(en_utc)]

ENTREE_CAMEL = ConfigDict(
    alias_generator=AliasGenerator(validation_alias=_camel_ou_snake),
    extra="ignore",
)

SORTIE_CAMEL = ConfigDict(
    from_attributes=True,
    alias_generator=AliasGenerator(serialization_alias=to_camel),
)


def vers_api(schema, obj) -> dict:
    """Sérialise un objet ORM via son schéma de réponse, clés en camelCase"""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)
