"""Demo storefront: product listing, single-product checkout, order success page."""
