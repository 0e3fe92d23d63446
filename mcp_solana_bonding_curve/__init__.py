"""
Solana Bonding Curve Pricing Package Initialization

This package prices the editions of an NFT collection minted on Solana along a
bonding curve. Given a curve configuration (linear, exponential, logarithmic, or
a piecewise cubic Bezier curve drawn in the studio's curve editor) it computes a
deterministic lamport price for any edition index, validates configurations
before they are deployed, and samples curves for charts.

The package includes:
- Curve data models and an editor-side Bezier path model
- A cubic Bezier evaluator with Newton-Raphson / bisection inversion
- Configuration validation reporting every violated invariant
- Exact integer pricing for every curve kind
- Curve sampling (optionally on worker threads) and price lookup tables
- Batch cost, ROI and parameter estimation helpers
- A read-only mirror of deployed on-chain curve accounts
- An MCP server exposing the engine as tools
"""
