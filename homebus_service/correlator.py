"""
ResponseCorrelator - Assemble the single response owed to each request.

Every path through the command pipeline (success, device not found,
offline, illegal action, unknown action) ends here, so each request
receives exactly one response carrying its correlation id.
"""

from typing import Optional

from homebus_mqtt.schemas import CommandRequest, CommandResponse, Timestamp


class ResponseCorrelator:
    """Structural assembly of CommandResponse; no business logic."""

    def build_response(
        self,
        request: CommandRequest,
        resolved_device_id: Optional[str],
        success: bool,
        message: str,
        device_type: Optional[str] = None,
    ) -> CommandResponse:
        """
        Build the response for a request.

        Args:
            request: Inbound request (source of correlation_id)
            resolved_device_id: Target device id, or None when resolution
                failed (the request's own device_id is echoed)
            success: Outcome flag, forwarded verbatim
            message: Outcome message, forwarded verbatim
            device_type: Type the request was handled as (default: the
                request's device_type)
        """
        return CommandResponse(
            correlation_id=request.correlation_id,
            device_type=device_type or request.device_type,
            device_id=request.device_id if resolved_device_id is None else resolved_device_id,
            success=success,
            message=message,
            timestamp=Timestamp.now(),
        )
