"""
Virtual Fridge Backend — Services Layer
=========================================

Business logic between the routes (HTTP) and the models (persistence).

Service inventory:
    - AIService (abstract) / GeminiService: produce vision and recipe generation
    - FileService:          image validation, storage and cleanup
    - AuthService:          Google ID-token verification and session JWTs
    - UserService:          profile CRUD
    - FoodTypeService / FoodItemService: catalogue and fridge rows
    - FridgeService:        fridge views and barcode lookups (OpenFoodFacts)
    - MediaService:         upload and vision workflows
    - RecipeService:        TheMealDB suggestions and AI recipes
    - NotificationService:  FCM push delivery
    - ExpiryNotificationScheduler: twice-daily expiry check
"""
