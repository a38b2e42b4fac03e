"""
Image converters: image to PDF and image re-encoding.

Both converters decode the upload with Pillow; PDF pages are drawn with
ReportLab.
"""

import logging
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError, features
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..models import ConversionOptions, ConversionResponse, UploadedFile
from ..utils.error_handling import ConversionError
from ..utils.mime_detector import get_mime_type

logger = logging.getLogger(__name__)

ICO_MAX_SIZE = 256

# Pillow save() format name for each recode target
PILLOW_FORMATS = {
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "avif": "AVIF",
    "ico": "ICO",
}

# Targets whose encoders take a quality setting
QUALITY_FORMATS = {"jpeg", "webp", "avif"}


def open_image(upload: UploadedFile) -> Image.Image:
    """Decode an upload fully, with EXIF orientation applied."""
    try:
        image = Image.open(BytesIO(upload.content))
        image.load()
    except (UnidentifiedImageError, OSError, EOFError, SyntaxError, ValueError) as e:
        logger.warning(f"Could not decode image {upload.file_name!r}: {e}")
        raise ConversionError("Unable to read the image file")

    transposed = ImageOps.exif_transpose(image)
    return transposed if transposed is not None else image


def flatten_onto_white(image: Image.Image) -> Image.Image:
    """Composite any transparency onto a white background and return RGB."""
    if image.mode == "RGB":
        return image

    if image.has_transparency_data:
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background

    return image.convert("RGB")


def image_to_pdf(upload: UploadedFile, options: ConversionOptions) -> ConversionResponse:
    """
    Place an image on a single A4 page.

    An explicit width and/or height resizes the image first (the missing side
    keeps its original value). The result is scaled to fit the page, possibly
    upscaled, and centered.
    """
    image = open_image(upload)

    if options.width or options.height:
        target = (options.width or image.width, options.height or image.height)
        image = image.resize(target, Image.Resampling.LANCZOS)

    image = flatten_onto_white(image)

    page_width, page_height = A4
    ratio = min(page_width / image.width, page_height / image.height)
    draw_width = image.width * ratio
    draw_height = image.height * ratio

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(upload.stem)
    pdf.drawImage(
        ImageReader(image),
        (page_width - draw_width) / 2,
        (page_height - draw_height) / 2,
        width=draw_width,
        height=draw_height,
    )
    pdf.showPage()
    pdf.save()

    return ConversionResponse.ok(
        buffer.getvalue(),
        f"{upload.stem}.pdf",
        get_mime_type(extension="pdf"),
    )


def _prepare_for_target(image: Image.Image, target: str) -> Image.Image:
    """Bring an image into a mode the target encoder accepts."""
    if target == "jpeg":
        return flatten_onto_white(image)

    if target == "ico":
        image = image.convert("RGBA")
        if max(image.size) > ICO_MAX_SIZE:
            image.thumbnail((ICO_MAX_SIZE, ICO_MAX_SIZE), Image.Resampling.LANCZOS)
        return image

    if target == "png":
        return image if image.mode in ("1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16") else image.convert("RGBA")

    # webp and avif encode RGB or RGBA only
    return image.convert("RGBA") if image.has_transparency_data else image.convert("RGB")


def encode_image(image: Image.Image, target: str, quality: int) -> bytes:
    """Encode a decoded image in the target format."""
    if target == "avif" and not features.check("avif"):
        raise ConversionError("AVIF encoding is not available on this server")

    prepared = _prepare_for_target(image, target)
    save_kwargs = {}
    if target in QUALITY_FORMATS:
        save_kwargs["quality"] = quality
    if target == "jpeg":
        save_kwargs["optimize"] = True
    if target == "ico":
        save_kwargs["sizes"] = [prepared.size]

    buffer = BytesIO()
    try:
        prepared.save(buffer, format=PILLOW_FORMATS[target], **save_kwargs)
    except KeyError:
        raise ConversionError(f"{target.upper()} encoding is not available on this server")
    return buffer.getvalue()


def recode_image(upload: UploadedFile, options: ConversionOptions, target: str) -> ConversionResponse:
    """
    Re-encode an image as jpeg, png, webp, avif or ico.

    Args:
        upload: The uploaded image
        options: Conversion options (quality is used by jpeg, webp and avif)
        target: Target format key

    Returns:
        ConversionResponse with the encoded image
    """
    if target not in PILLOW_FORMATS:
        raise ConversionError(f"Unsupported image format: {target}")

    image = open_image(upload)
    data = encode_image(image, target, options.quality)

    return ConversionResponse.ok(
        data,
        f"{upload.stem}.{target}",
        get_mime_type(extension=target),
    )
