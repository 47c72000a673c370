"""
Record to content node conversion.
"""

from .domain import ContentNode, GlobalId, ResultRecord
from .exceptions import InvalidRecordError
from .ports import HostCapabilitiesPort

NODE_TYPE_PREFIX = "Shopify"

# Set by Shopify on child lines of a bulk JSONL artifact
PARENT_ID_KEY = "__parentId"


class NodeBuilder:
    """Builds ContentNodes using the host's id and digest functions"""

    def __init__(self, host: HostCapabilitiesPort, type_prefix: str = NODE_TYPE_PREFIX):
        self.host = host
        self.type_prefix = type_prefix

    def build(self, record: ResultRecord) -> ContentNode:
        """
        Reshape a record into a node.

        Raises:
            InvalidRecordError: If the record id (or parent id) is not a global id
        """
        try:
            global_id = GlobalId.parse(record.get("id"))
        except ValueError as e:
            raise InvalidRecordError(f"Cannot build node: {e}", record.get("id"))

        fields = {key: value for key, value in record.items() if key not in ("id", PARENT_ID_KEY)}

        parent_id = None
        parent_shopify_id = record.get(PARENT_ID_KEY)
        if parent_shopify_id is not None:
            try:
                GlobalId.parse(parent_shopify_id)
            except ValueError as e:
                raise InvalidRecordError(f"Cannot link parent of {global_id.raw}: {e}", global_id.raw)
            fields["parentShopifyId"] = parent_shopify_id
            parent_id = self.host.create_node_id(parent_shopify_id)

        return ContentNode(
            node_id=self.host.create_node_id(global_id.raw),
            shopify_id=global_id.raw,
            node_type=f"{self.type_prefix}{global_id.type_name}",
            fields=fields,
            content_digest=self.host.create_content_digest(record),
            parent_id=parent_id,
        )
