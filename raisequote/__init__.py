"""
Raise Lab Equipment - Quotation PDF Composer

Packages:
    forms/      Quotation PDF layout: page frame, flow layout, terms, assets
    api/        Flask download endpoint for generated quotations
    core/       Shared configuration, logging, and paths
"""
