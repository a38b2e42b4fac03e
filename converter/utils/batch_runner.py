"""
Batch conversion: one operation applied to several uploads in order.
"""

import logging
from typing import List

from ..models import BatchConversionRequest, ConversionRequest, ConversionResponse
from .dispatcher import dispatch
from .error_handling import ErrorCode

logger = logging.getLogger(__name__)


def run_batch(request: BatchConversionRequest) -> List[ConversionResponse]:
    """
    Convert every file of a batch sequentially.

    One response per input, in input order; a failing file never affects its
    siblings.
    """
    if not request.files:
        return [ConversionResponse.failure(
            "No files provided for batch conversion", ErrorCode.MISSING_PARAMETER
        )]

    results = []
    for upload in request.files:
        single = ConversionRequest(
            conversion_type=request.conversion_type,
            file=upload,
            options=request.options,
        )
        results.append(dispatch(single))

    succeeded = sum(1 for result in results if result.success)
    logger.info(f"Batch {request.conversion_type}: {succeeded}/{len(results)} file(s) converted")
    return results
