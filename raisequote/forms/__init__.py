"""Quotation PDF composition.

Key exports:
    generate_quotation_pdf() - Build the full quotation PDF (bytes + metadata)
    quotation_filename()     - <quotation_number>_Quotation.pdf
    prefetch_assets()        - Concurrent logo/item image fetch + normalize
"""
