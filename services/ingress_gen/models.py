from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthCheck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str = ""
    interval_seconds: int = Field(default=0, ge=0, alias="intervalSeconds")
    timeout_seconds: int = Field(default=0, ge=0, alias="timeoutSeconds")
    unhealthy_threshold_count: int = Field(default=0, ge=0, alias="unhealthyThresholdCount")
    healthy_threshold_count: int = Field(default=0, ge=0, alias="healthyThresholdCount")


class BackendDescriptor(BaseModel):
    """A Kubernetes service port as seen by Envoy.

    namespace, name and port identify the backend; the remaining fields only
    change how Envoy talks to it.
    """

    model_config = ConfigDict(populate_by_name=True)

    namespace: str
    name: str
    port: int = Field(ge=0, le=65535)
    load_balancer_strategy: Optional[str] = Field(default=None, alias="loadBalancerStrategy")
    health_check: Optional[HealthCheck] = Field(default=None, alias="healthCheck")
