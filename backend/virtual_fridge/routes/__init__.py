"""
Virtual Fridge Backend — API Routes Package
=============================================

Route Inventory:
    - health.py:        GET  /health
    - auth.py:          POST /api/auth/{signup,signin,google,test-user}
    - users.py:         GET|POST|DELETE /api/user/profile, GET /api/hobbies
    - media.py:         POST /api/media/{upload,vision}, GET /uploads/{path}
    - food_items.py:    /api/food-item
    - food_types.py:    /api/food-type
    - fridge.py:        GET /api/fridge, POST /api/fridge/barcode
    - recipes.py:       GET /api/recipes, POST /api/recipes/ai
    - notifications.py: /api/notifications/{test,check,admin/*}

Routes stay thin: unpack the request, call a service, wrap the result in
the {message, data} envelope. Errors propagate to the global handlers.
"""
