from typing import Any, Dict

from .base_service import BaseService


class StreamManagementService(BaseService):

    async def cancel_stream(self, stream_id: str) -> Dict[str, Any]:
        """Close a stream; unreleased funds return to the sender"""
        stream_id = str(stream_id or '').strip()
        if not stream_id:
            return self.failure("stream_id is required", error_type='validation')
        try:
            tx = await self.client.close_stream(stream_id)
        except ValueError as e:
            return self.failure(str(e), error_type='validation')
        except Exception as e:
            self.logger.error(f"Failed to cancel stream {stream_id}: {e}", exc_info=True)
            return self.failure(f"Failed to cancel stream: {e}")

        if tx.status != 'completed':
            return self.failure(f"Cancel transaction failed: {tx.vm_status or tx.error}", transaction=tx.to_dict())
        return {
            'success': True,
            'stream_id': stream_id,
            'transaction': tx.to_dict(),
            'message': "Stream cancelled successfully.",
        }
