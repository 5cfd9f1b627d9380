# Services layer: rule storage and the checkout shipping facade
