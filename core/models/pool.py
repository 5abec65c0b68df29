"""
Remote Resource Models.

Exports:
    PoolSpec: Requested pool shape (VM size, image, node count)
    PoolRef: Reference to an existing or freshly created pool
    JobRef: Reference to an existing or freshly created job
"""

from pydantic import BaseModel, Field, ConfigDict

from config.defaults import PoolDefaults


class PoolSpec(BaseModel):
    """Fixed-size pool request. Defaults match a one-node Ubuntu pool."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    pool_id: str = Field(..., min_length=1, max_length=PoolDefaults.MAX_ID_LENGTH)
    vm_size: str = Field(default=PoolDefaults.VM_SIZE)
    target_dedicated_nodes: int = Field(default=PoolDefaults.TARGET_DEDICATED_NODES, ge=0)
    image_publisher: str = Field(default=PoolDefaults.IMAGE_PUBLISHER)
    image_offer: str = Field(default=PoolDefaults.IMAGE_OFFER)
    image_sku: str = Field(default=PoolDefaults.IMAGE_SKU)
    image_version: str = Field(default=PoolDefaults.IMAGE_VERSION)
    node_agent_sku_id: str = Field(default=PoolDefaults.NODE_AGENT_SKU_ID)


class PoolRef(BaseModel):
    """Pool identifier; created is False when an existing pool was reused."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    pool_id: str = Field(..., min_length=1)
    created: bool = True


class JobRef(BaseModel):
    """Job identifier bound to its pool; created is False on reuse."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    job_id: str = Field(..., min_length=1, max_length=PoolDefaults.MAX_ID_LENGTH)
    pool_id: str = Field(..., min_length=1)
    created: bool = True
