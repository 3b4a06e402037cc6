"""SEO Page Enhancer."""
