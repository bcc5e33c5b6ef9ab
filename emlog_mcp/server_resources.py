from .catalog import ID_PLACEHOLDER, Catalog, CatalogEntry

MEDIA_TYPE_JSON = "application/json"


def _static_reader(catalog: Catalog, uri: str):
    async def read_resource() -> str:
        return (await catalog.read_resource(uri)).text

    return read_resource


def _template_reader(catalog: Catalog, entry: CatalogEntry):
    prefix = entry.identifier.replace(ID_PLACEHOLDER, "")

    # id stays a string so malformed identifiers reach the catalog's own validation
    async def read_resource_template(id: str) -> str:
        return (await catalog.read_resource(f"{prefix}{id}")).text

    return read_resource_template


def register_resources(mcp, catalog: Catalog) -> None:
    """Expose every catalog resource; failures are returned as a JSON error document"""
    for entry in catalog.resources:
        if not entry.is_template:
            mcp.resource(
                entry.identifier,
                name=entry.title,
                description=entry.description,
                mime_type=MEDIA_TYPE_JSON,
            )(_static_reader(catalog, entry.identifier))
            continue

        mcp.resource(
            entry.identifier,
            name=entry.title,
            description=entry.description,
            mime_type=MEDIA_TYPE_JSON,
        )(_template_reader(catalog, entry))

        if entry.default_id is not None:
            # The untemplated form reads the default identifier
            default_uri = entry.identifier.replace(f"/{ID_PLACEHOLDER}", "")
            mcp.resource(
                default_uri,
                name=f"{entry.title} (default)",
                description=entry.description,
                mime_type=MEDIA_TYPE_JSON,
            )(_static_reader(catalog, default_uri))
