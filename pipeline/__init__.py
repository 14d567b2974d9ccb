"""
Document OCR pipeline.

Stages, per document:
1. rasterization - Render each PDF page to PNG (poppler via pdf2image)
2. enhancement - Grayscale, resize, denoise, sharpen, binarize (Pillow)
3. recognition - Extract text per page (Google Document AI)

Enhancement and recognition are linked per page, not per phase.
"""
