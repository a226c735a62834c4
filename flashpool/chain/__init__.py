"""
In-memory stand-ins for the systems the flash-loan engine talks to: token
ledger, primary pool, wrapped native asset, lending protocols and smart
accounts. `flashpool.chain.world.build_world` wires them together.
"""
