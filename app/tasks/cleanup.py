import asyncio
import logging
from app.core.dependencies import get_otp_service, get_payment_registry

logger = logging.getLogger(__name__)


async def cleanup_expired_otps():
    """
    Drop OTP challenges past their validity window.
    Runs every minute.
    """
    count = get_otp_service().purge_expired()
    if count:
        logger.info(f"OTP cleanup complete: {count} challenges expired")
    return count


async def cleanup_stale_payment_sessions():
    """
    Drop payment sessions whose checkout was never reported.
    Runs every 15 minutes.
    """
    count = get_payment_registry().purge_stale()
    if count:
        logger.info(f"Payment cleanup complete: {count} sessions dropped")
    return count


async def run_cleanup_loop():
    """
    Main cleanup loop that runs continuously.
    """
    logger.info("Starting cleanup background tasks...")

    otp_interval = 60                # 1 minute
    payment_interval = 15 * 60       # 15 minutes

    last_otp_cleanup = 0
    last_payment_cleanup = 0

    while True:
        try:
            current_time = asyncio.get_running_loop().time()

            if current_time - last_otp_cleanup >= otp_interval:
                await cleanup_expired_otps()
                last_otp_cleanup = current_time

            if current_time - last_payment_cleanup >= payment_interval:
                await cleanup_stale_payment_sessions()
                last_payment_cleanup = current_time

            # Sleep for 1 minute before next check
            await asyncio.sleep(60)

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in cleanup loop: {e}")
            await asyncio.sleep(60)
