"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that multiple features use
(document store wiring, settings, errors, validation, outbound HTTP). Keep
feature-specific queries and business logic in the corresponding feature
package (e.g. `blog/`).
"""
